from datetime import datetime
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class CamelModel(BaseModel):
    """JSON bodies use camelCase keys; Python code uses snake_case"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserRecord(BaseModel):
    """Stored user as handed out by a UserStore, including the password hash"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    hashed_password: str

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    nickname: Optional[str] = None
    phone: Optional[str] = None
    gender: Optional[str] = None
    date_of_birth: Optional[str] = None

    birth_city: Optional[str] = None
    birth_state: Optional[str] = None
    birth_country: Optional[str] = None
    current_city: Optional[str] = None
    current_state: Optional[str] = None
    current_country: Optional[str] = None

    gotra: Optional[str] = None
    pravara: Optional[str] = None
    community: Optional[str] = None
    primary_language: Optional[str] = None
    secondary_language: Optional[str] = None

    occupation: Optional[str] = None
    company: Optional[str] = None
    industry: Optional[str] = None
    bio: Optional[str] = None

    hide_email: bool = False
    hide_phone: bool = False
    hide_dob: bool = False

    profile_completed: bool = False

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserResponse(CamelModel):
    """Public view of a user; the password hash is never part of it"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    nickname: Optional[str] = None
    phone: Optional[str] = None
    gender: Optional[Gender] = None
    date_of_birth: Optional[str] = None
    birth_city: Optional[str] = None
    birth_state: Optional[str] = None
    birth_country: Optional[str] = None
    current_city: Optional[str] = None
    current_state: Optional[str] = None
    current_country: Optional[str] = None
    gotra: Optional[str] = None
    pravara: Optional[str] = None
    community: Optional[str] = None
    primary_language: Optional[str] = None
    secondary_language: Optional[str] = None
    occupation: Optional[str] = None
    company: Optional[str] = None
    industry: Optional[str] = None
    bio: Optional[str] = None
    hide_email: bool = False
    hide_phone: bool = False
    hide_dob: bool = False
    profile_completed: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_serializer('created_at', 'updated_at')
    def serialize_timestamp(self, value: Optional[datetime], _info):
        return value.isoformat() if value else None

    @classmethod
    def from_record(cls, record: UserRecord) -> "UserResponse":
        return cls.model_validate(record.model_dump(exclude={"hashed_password"}))


def check_password_characters(value: str) -> str:
    """Reject characters bcrypt cannot hash"""
    # bcrypt treats the password as a C string, so a NUL byte would end it early;
    # passlib refuses such input outright
    if "\x00" in value:
        raise ValueError("Password cannot contain NUL characters")
    return value


class RegisterRequest(CamelModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    nickname: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6)
    phone: str = Field(min_length=1)

    @field_validator("password")
    @classmethod
    def reject_nul(cls, value: str) -> str:
        return check_password_characters(value)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("password")
    @classmethod
    def reject_nul(cls, value: str) -> str:
        return check_password_characters(value)


# Fields a profile update may not clear once supplied
_NON_NULLABLE_PROFILE_FIELDS = (
    "first_name", "last_name", "nickname", "email", "phone", "gender",
    "current_city", "current_state", "current_country",
    "gotra", "pravara", "community", "primary_language",
    "hide_email", "hide_phone", "hide_dob",
)


class ProfileUpdateRequest(CamelModel):
    """
    Any subset of the profile fields.

    Unknown keys are ignored, which drops password, id, timestamps and
    profileCompleted from client payloads before they reach the service.
    """
    first_name: Optional[str] = Field(None, min_length=1)
    last_name: Optional[str] = Field(None, min_length=1)
    nickname: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, min_length=1)
    gender: Optional[Gender] = None
    date_of_birth: Optional[str] = None
    birth_city: Optional[str] = None
    birth_state: Optional[str] = None
    birth_country: Optional[str] = None
    current_city: Optional[str] = Field(None, min_length=1)
    current_state: Optional[str] = Field(None, min_length=1)
    current_country: Optional[str] = Field(None, min_length=1)
    gotra: Optional[str] = Field(None, min_length=1)
    pravara: Optional[str] = Field(None, min_length=1)
    community: Optional[str] = Field(None, min_length=1)
    primary_language: Optional[str] = Field(None, min_length=1)
    secondary_language: Optional[str] = None
    occupation: Optional[str] = None
    company: Optional[str] = None
    industry: Optional[str] = None
    bio: Optional[str] = None
    hide_email: Optional[bool] = None
    hide_phone: Optional[bool] = None
    hide_dob: Optional[bool] = None

    @field_validator(*_NON_NULLABLE_PROFILE_FIELDS, mode="before")
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("Field cannot be null")
        return value

    def changes(self) -> dict[str, Any]:
        """Fields the client actually sent, keyed by their snake_case names"""
        return self.model_dump(exclude_unset=True, mode="json")


class AuthResponse(CamelModel):
    user: UserResponse
    token: str
    redirect_to: str


class CurrentUserResponse(CamelModel):
    user: UserResponse


class ProfileResponse(CamelModel):
    profile: UserResponse


class ProfileUpdateResponse(CamelModel):
    profile: UserResponse
    message: str = "Profile updated successfully"
    redirect_to: Optional[str] = None


class CompletionResponse(CamelModel):
    is_complete: bool
    redirect_to: Optional[str] = None
    missing_fields: list[str] = Field(default_factory=list)
