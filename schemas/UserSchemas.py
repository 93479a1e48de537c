from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, AfterValidator, field_validator, model_validator

from schemas.CommonSchemas import PHONE_PATTERN, valid_email

Email = Annotated[str, AfterValidator(valid_email)]


def _check_name(value: str) -> str:
    value = value.strip()
    if len(value) < 2:
        raise ValueError("Nama minimal 2 karakter")
    if len(value) > 50:
        raise ValueError("Nama maksimal 50 karakter")
    return value


def _check_new_password(value: str) -> str:
    if len(value) < 6:
        raise ValueError("Password minimal 6 karakter")
    return value


Name = Annotated[str, AfterValidator(_check_name)]
NewPassword = Annotated[str, AfterValidator(_check_new_password)]


class UserCreate(BaseModel):
    name: Name
    email: Email
    password: NewPassword


class UserBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str


class RegisterResponse(BaseModel):
    message: str
    user: UserBrief


class RequestDetails(BaseModel):
    email: str
    password: str


class TokenSchema(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class RefreshTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class AccountOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    email: str
    phone: str = ""
    password_changed_at: Optional[datetime] = None
    created_at: datetime

    @field_validator("phone", mode="before")
    @classmethod
    def _phone_or_empty(cls, v):
        return v or ""


class AccountUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[Name] = None
    email: Optional[Email] = None
    phone: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def _validate_phone(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if v and not PHONE_PATTERN.match(v):
            raise ValueError("Nomor HP tidak valid")
        return v


class AccountUpdateResponse(BaseModel):
    message: str
    user: AccountOut


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str
    confirm_password: str

    @field_validator("current_password")
    @classmethod
    def _current_required(cls, v: str) -> str:
        if not v:
            raise ValueError("Password lama wajib diisi")
        return v

    @field_validator("new_password")
    @classmethod
    def _new_min_length(cls, v: str) -> str:
        if len(v) < 6:
            raise ValueError("Password baru minimal 6 karakter")
        return v

    @field_validator("confirm_password")
    @classmethod
    def _confirm_required(cls, v: str) -> str:
        if not v:
            raise ValueError("Konfirmasi password wajib diisi")
        return v

    @model_validator(mode="after")
    def _passwords_match(self):
        if self.new_password != self.confirm_password:
            raise ValueError("Password baru dan konfirmasi tidak cocok")
        return self


class ForgotPasswordRequest(BaseModel):
    email: Email


class VerifyOtpRequest(BaseModel):
    email: Email
    otp: str

    @field_validator("otp")
    @classmethod
    def _six_digits(cls, v: str) -> str:
        v = v.strip()
        if len(v) != 6:
            raise ValueError("OTP harus 6 digit")
        return v


class VerifyOtpResponse(BaseModel):
    message: str
    reset_token: str


class ResetPasswordRequest(BaseModel):
    email: Email
    reset_token: str
    new_password: NewPassword

    @field_validator("reset_token")
    @classmethod
    def _token_required(cls, v: str) -> str:
        if not v:
            raise ValueError("Reset token diperlukan")
        return v
