import pytest

from scheduling.slots import format_hhmm, generate_time_slots, normalize_hhmm, parse_hhmm


def test_one_hour_in_half_hours():
    assert generate_time_slots("09:00", "10:00", 30) == ["09:00", "09:30"]


def test_empty_window():
    assert generate_time_slots("10:00", "10:00", 30) == []


def test_inverted_window():
    assert generate_time_slots("12:00", "09:00", 15) == []


def test_last_slot_may_overrun_end():
    assert generate_time_slots("09:50", "10:10", 30) == ["09:50"]


def test_minutes_carry_into_hours():
    assert generate_time_slots("09:45", "11:00", 25) == ["09:45", "10:10", "10:35"]


@pytest.mark.parametrize("duration", [0, -15, None])
def test_non_positive_duration_gives_no_slots(duration):
    assert generate_time_slots("09:00", "17:00", duration) == []


def test_full_day_labels_are_zero_padded():
    slots = generate_time_slots("00:00", "23:59", 60)
    assert slots[0] == "00:00"
    assert slots[-1] == "23:00"
    assert len(slots) == 24


def test_slots_are_strictly_increasing():
    slots = generate_time_slots("08:00", "18:00", 20)
    assert slots == sorted(slots)
    assert len(set(slots)) == len(slots)


def test_parse_and_format():
    assert parse_hhmm("09:30") == 570
    assert format_hhmm(570) == "09:30"
    assert format_hhmm(5) == "00:05"


@pytest.mark.parametrize("value", ["9:5", "123:00", "24:00", "12:60", "noon", "", None])
def test_parse_rejects_malformed_times(value):
    with pytest.raises(ValueError):
        parse_hhmm(value)


def test_single_digit_hours_are_accepted_and_padded():
    assert parse_hhmm("9:30") == 570
    assert normalize_hhmm("9:30") == "09:30"
    assert normalize_hhmm("17:05") == "17:05"
    assert generate_time_slots("9:00", "10:00", 30) == ["09:00", "09:30"]
