"""
Request bodies accepted by the JSON API.

Every endpoint that takes a body validates it through one of these models
before anything reaches the services. Auth bodies use the camelCase keys the
front end sends; record bodies use the column names.
"""
from __future__ import annotations

import datetime as dt
from typing import Annotated, Literal, Optional

from flask import request
from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError


class _Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


# passwords are hashed exactly as sent
Password = Annotated[str, StringConstraints(strip_whitespace=False, min_length=1)]


# Auth
class LoginRequest(_Body):
    username: str = Field(..., min_length=1)
    password: Password


class RegisterRequest(_Body):
    email: str = Field(..., min_length=3)
    password: Password
    display_name: Optional[str] = Field(None, alias="displayName")
    phone: Optional[str] = None


class SendOtpRequest(_Body):
    phone: str = Field(..., min_length=1)


class PhoneOtpRequest(_Body):
    phone: str = Field(..., min_length=1)
    otp: str = Field(..., min_length=1)


class SendEmailVerificationRequest(_Body):
    email: str = Field(..., min_length=3)


class VerifyEmailRequest(_Body):
    email: str = Field(..., min_length=3)
    token: str = Field(..., min_length=1)


class GoogleLoginRequest(_Body):
    id_token: Optional[str] = Field(None, alias="idToken")
    email: str = Field(..., min_length=3)
    display_name: Optional[str] = Field(None, alias="displayName")
    photo_url: Optional[str] = Field(None, alias="photoUrl")


class FacebookLoginRequest(_Body):
    access_token: Optional[str] = Field(None, alias="accessToken")
    email: str = Field(..., min_length=3)
    display_name: Optional[str] = Field(None, alias="displayName")
    photo_url: Optional[str] = Field(None, alias="photoUrl")


class ChangePasswordRequest(_Body):
    current_password: Password = Field(..., alias="currentPassword")
    new_password: Password = Field(..., alias="newPassword")


# Records
class StudentCreate(_Body):
    name: str = Field(..., min_length=1)
    register_number: str = Field(..., min_length=1)
    department: str = Field(..., min_length=1)
    year: int = Field(..., ge=1)
    email: str = Field(..., min_length=3)
    phone: Optional[str] = None


class StudentUpdate(_Body):
    name: str = Field(..., min_length=1)
    department: str = Field(..., min_length=1)
    year: int = Field(..., ge=1)
    email: str = Field(..., min_length=3)
    phone: Optional[str] = None


class MarkCreate(_Body):
    student_id: int
    subject: str = Field(..., min_length=1)
    marks: int
    max_marks: int = Field(100, gt=0)


class MarkUpdate(_Body):
    subject: str = Field(..., min_length=1)
    marks: int
    max_marks: int = Field(100, gt=0)


class AttendanceUpsert(_Body):
    student_id: int
    date: dt.date
    status: Literal["Present", "Absent", "Leave"]


def _describe(exc: PydanticValidationError) -> str:
    first = exc.errors()[0]
    field = ".".join(str(p) for p in first.get("loc", ())) or "body"
    if first.get("type") == "missing":
        return f"missing field: {field}"
    return f"invalid field {field}: {first.get('msg')}"


def parse_body(model):
    """Validate the current request's JSON body against ``model``."""
    data = request.get_json(silent=True) or {}
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(_describe(exc))
