from collections.abc import Mapping
from typing import Any, Optional

PROFILE_PAGE = "/profile"
DASHBOARD_PAGE = "/dashboard"

# Every one of these must be filled in before the rest of the app opens up
REQUIRED_PROFILE_FIELDS = (
    "first_name",
    "last_name",
    "nickname",
    "email",
    "phone",
    "gender",
    "current_city",
    "current_state",
    "current_country",
    "gotra",
    "pravara",
    "community",
    "primary_language",
)


def _field_value(user: Any, field: str) -> Any:
    if isinstance(user, Mapping):
        return user.get(field)
    return getattr(user, field, None)


def is_profile_complete(user: Any) -> bool:
    """
    True when every required field is present, not None and not "".

    Accepts a UserRecord, an ORM row or a plain mapping. Values are not
    trimmed, so whitespace counts as filled in.
    """
    for field in REQUIRED_PROFILE_FIELDS:
        value = _field_value(user, field)
        if value is None or value == "":
            return False
    return True


def missing_profile_fields(user: Any) -> list[str]:
    """Required fields that still need a value"""
    return [
        field for field in REQUIRED_PROFILE_FIELDS
        if _field_value(user, field) is None or _field_value(user, field) == ""
    ]


def redirect_after_login(profile_completed: bool) -> str:
    return DASHBOARD_PAGE if profile_completed else PROFILE_PAGE


def redirect_after_update(profile_completed: bool) -> Optional[str]:
    return DASHBOARD_PAGE if profile_completed else None
