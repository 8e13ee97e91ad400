from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.contrib.auth.models import User

from .models import UserProfile


class UserProfileInline(admin.StackedInline):
    """Edit role and contact details inside the standard User page."""
    model = UserProfile
    can_delete = False
    verbose_name_plural = "User Profile"
    fk_name = "user"


class UserAdmin(BaseUserAdmin):
    inlines = (UserProfileInline,)
    list_display = ("username", "email", "first_name", "last_name", "get_role", "is_staff")

    @admin.display(description="Role")
    def get_role(self, obj):
        return obj.profile.role if hasattr(obj, "profile") else "-"


admin.site.unregister(User)
admin.site.register(User, UserAdmin)


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "role", "phone", "gender")
    list_filter = ("role", "gender")
    search_fields = ("user__username", "user__email", "phone")
