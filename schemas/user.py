from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import Field, ValidationInfo, field_validator

from schemas.common import ApiModel

UserType = Literal["client", "manager", "supplier", "agent", "admin"]


class RegisterRequest(ApiModel):
    username: str = Field(..., min_length=3)
    password: str = Field(..., min_length=6)
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    user_type: UserType = "client"
    phone: Optional[str] = None
    inn: Optional[str] = None
    company_name: Optional[str] = None
    company_id: Optional[int] = None


class LoginRequest(ApiModel):
    username: str = Field(..., min_length=3)
    password: str = Field(..., min_length=6)


class UserCreate(ApiModel):
    username: str
    password_hash: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    user_type: UserType = "client"
    phone: Optional[str] = None
    inn: Optional[str] = None
    company_name: Optional[str] = None
    company_id: Optional[int] = None
    is_active: bool = True
    is_verified: bool = False


class ProfileUpdate(ApiModel):
    """Fields a user may change on their own profile."""
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    inn: Optional[str] = None


class AdminUserUpdate(ProfileUpdate):
    user_type: Optional[UserType] = None
    company_name: Optional[str] = None
    company_id: Optional[int] = None
    is_active: Optional[bool] = None
    is_verified: Optional[bool] = None

    @field_validator("user_type", "is_active", "is_verified")
    @classmethod
    def not_null(cls, value, info: ValidationInfo):
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value


class UserRecord(ApiModel):
    id: int
    username: str
    password_hash: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    user_type: UserType
    phone: Optional[str] = None
    inn: Optional[str] = None
    company_name: Optional[str] = None
    company_id: Optional[int] = None
    is_active: bool = True
    is_verified: bool = False
    created_at: datetime
    updated_at: datetime

    def to_response(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude={"password_hash"})
