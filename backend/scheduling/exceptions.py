# scheduling/exceptions.py


class SchedulingError(Exception):
    pass


class InvalidLeaveStatus(SchedulingError):
    def __init__(self, status):
        super().__init__(f"Invalid status {status!r}; expected 'approved' or 'rejected'")
        self.status = status


class LeaveAlreadyReviewed(SchedulingError):
    def __init__(self, leave_id, status):
        super().__init__(f"Leave {leave_id} was already {status}")
        self.leave_id = leave_id
        self.status = status


class SlotUnavailable(SchedulingError):
    def __init__(self, time, reason=None):
        super().__init__(reason or f"The {time} slot is not available")
        self.time = time
        self.reason = reason
