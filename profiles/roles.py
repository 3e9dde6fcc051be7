"""Role lookups shared by permissions and notification dispatch."""

from django.contrib.auth import get_user_model
from django.db.models import Q

from .models import Profile


def is_admin_user(user) -> bool:
    """Staff users and users with an admin profile count as store admins."""
    if not user or not user.is_authenticated:
        return False
    if user.is_staff:
        return True
    prof = getattr(user, "profile", None)
    return getattr(prof, "role", "") == Profile.Role.ADMIN


def admin_users():
    """Active users that receive admin notifications."""
    User = get_user_model()
    return (
        User.objects.filter(is_active=True)
        .filter(Q(is_staff=True) | Q(profile__role=Profile.Role.ADMIN))
        .distinct()
    )
