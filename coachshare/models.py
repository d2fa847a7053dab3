"""
API payload types using Pydantic models.

Server payloads are camelCase; fields are snake_case with camelCase aliases.
"""

from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from coachshare.services.errors import MissingResponseDataError


class Qualification(BaseModel):
    """Coach qualification entry."""

    model_config = ConfigDict(extra="ignore")

    title: str = ""
    institution: str | None = None
    year: str | int | None = None


class User(BaseModel):
    """Flat, normalized user shared by every authenticated code path."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = ""
    first_name: str = Field(default="", alias="firstName")
    last_name: str = Field(default="", alias="lastName")
    name: str = ""
    email: str = ""
    role: str | None = None  # athlete | coach | admin
    is_email_verified: bool = Field(default=False, alias="isEmailVerified")
    coach_id: str | None = Field(default=None, alias="coachId")
    primary_coach_id: str | None = Field(default=None, alias="primaryCoachId")
    coaches: list[Any] = Field(default_factory=list)
    athletes: list[Any] = Field(default_factory=list)
    bio: str | None = None
    experience: str | None = None
    specialties: list[str] = Field(default_factory=list)
    qualifications: list[Qualification] = Field(default_factory=list)
    avatar_url: str | None = Field(default=None, alias="avatarUrl")
    social_links: dict[str, str] = Field(default_factory=dict, alias="socialLinks")


class Session(BaseModel):
    """Derived session state, rebuilt on every process start."""

    user: User | None = None
    is_authenticated: bool = False

    @classmethod
    def anonymous(cls) -> "Session":
        return cls(user=None, is_authenticated=False)


class Coach(BaseModel):
    """Coach as listed to an athlete."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = ""
    first_name: str = Field(default="", alias="firstName")
    last_name: str = Field(default="", alias="lastName")
    specialties: list[str] = Field(default_factory=list)
    bio: str = ""
    experience: str = ""
    qualifications: list[Qualification] = Field(default_factory=list)
    avatar_url: str = Field(default="", alias="avatarUrl")
    social_links: dict[str, str] = Field(default_factory=dict, alias="socialLinks")
    is_primary: bool = Field(default=False, alias="isPrimary")
    rating: float | None = None
    reviews: int | None = None
    created_at: str | None = Field(default=None, alias="createdAt")
    start_date: str | None = Field(default=None, alias="startDate")


class Achievement(BaseModel):
    """Achievement earned (or not yet earned) by an athlete."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    description: str = ""
    icon_name: str = Field(default="Award", alias="iconName")
    achieved: bool = False
    achieved_date: str | None = Field(default=None, alias="achievedDate")


class NotificationPage(BaseModel):
    """One page of notifications."""

    notifications: list[dict[str, Any]] = Field(default_factory=list)
    total_pages: int = 0
    current_page: int = 1
    total: int = 0


def _strip_private(raw: dict[str, Any]) -> dict[str, Any]:
    return {
        k: v for k, v in raw.items() if not k.startswith("_") and v is not None
    }


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _optional_text(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _strings(value: Any) -> list[str]:
    return [v for v in _list(value) if isinstance(v, str)]


def _string_map(value: Any) -> dict[str, str]:
    """Keep only string values; unset links arrive as null."""
    if not isinstance(value, dict):
        return {}
    return {str(k): v for k, v in value.items() if isinstance(v, str)}


def _ref(value: Any) -> str | None:
    """Id of a reference that may arrive populated as a nested document."""
    if isinstance(value, dict):
        value = value.get("_id") or value.get("id")
    if value is None or isinstance(value, (dict, list, bool)):
        return None
    return str(value)


def _qualifications(value: Any) -> list[dict[str, Any]]:
    result = []
    for item in _list(value):
        if not isinstance(item, dict):
            continue
        year = item.get("year")
        result.append(
            {
                "title": _text(item.get("title")),
                "institution": _optional_text(item.get("institution")),
                "year": year if isinstance(year, (str, int)) else None,
            }
        )
    return result


# Per-field coercion applied to user payloads before validation
_USER_FIELDS: dict[str, Callable[[Any], Any]] = {
    "email": _text,
    "role": _optional_text,
    "isEmailVerified": bool,
    "coachId": _ref,
    "primaryCoachId": _ref,
    "coaches": _list,
    "athletes": _list,
    "bio": _optional_text,
    "experience": _optional_text,
    "specialties": _strings,
    "qualifications": _qualifications,
    "avatarUrl": _optional_text,
    "socialLinks": _string_map,
}


def normalize_user(raw: dict[str, Any], previous: User | None = None) -> User:
    """
    Flatten a server user payload into a User.

    ``name`` is always ``first_name + " " + last_name``. When ``previous`` is
    given the payload is treated as a partial update: omitted first/last
    names fall back to the previous values.

    Null or mistyped sub-fields are coerced to their defaults.

    Raises:
        MissingResponseDataError: if the payload still fails validation
    """
    base: dict[str, Any] = {}
    if previous is not None:
        base = previous.model_dump(by_alias=True)

    incoming = _strip_private(raw)
    for key, coerce in _USER_FIELDS.items():
        if key in incoming:
            incoming[key] = coerce(incoming[key])

    payload = {**base, **incoming}
    first_name = _text(raw.get("firstName")) or _text(base.get("firstName"))
    last_name = _text(raw.get("lastName")) or _text(base.get("lastName"))

    payload["id"] = _ref(raw.get("id") or raw.get("_id")) or base.get("id") or ""
    payload["firstName"] = first_name
    payload["lastName"] = last_name
    payload["name"] = f"{first_name} {last_name}"
    try:
        return User.model_validate(payload)
    except ValidationError as e:
        raise MissingResponseDataError(
            "Received invalid user data from server", data=raw
        ) from e


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def normalize_coach(raw: dict[str, Any]) -> Coach:
    """Coach payload with list and dict fields defaulted."""
    reviews = _number(raw.get("reviews"))
    created_at = _optional_text(raw.get("createdAt"))
    return Coach(
        id=_ref(raw.get("id") or raw.get("_id")) or "",
        first_name=_text(raw.get("firstName")),
        last_name=_text(raw.get("lastName")),
        specialties=_strings(raw.get("specialties")),
        bio=_text(raw.get("bio")),
        experience=_text(raw.get("experience")),
        qualifications=_qualifications(raw.get("qualifications")),
        avatar_url=_text(raw.get("avatarUrl")),
        social_links=_string_map(raw.get("socialLinks")),
        is_primary=bool(raw.get("isPrimary")),
        rating=_number(raw.get("rating")),
        reviews=int(reviews) if reviews is not None else None,
        created_at=created_at,
        start_date=_optional_text(raw.get("startDate")) or created_at,
    )
