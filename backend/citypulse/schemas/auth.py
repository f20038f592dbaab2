from pydantic import BaseModel, ConfigDict, EmailStr, Field

from citypulse.schemas.profile import ProfileRead


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    full_name: str | None = None
    phone: str | None = None


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class RefreshRequest(BaseModel):
    refresh_token: str


class StaffBootstrapRequest(BaseModel):
    """Credentials for the two staff accounts, in the camelCase the setup form posts."""

    model_config = ConfigDict(populate_by_name=True)

    admin_email: EmailStr = Field(alias="adminEmail")
    admin_password: str = Field(alias="adminPassword", min_length=6)
    moderator_email: EmailStr = Field(alias="moderatorEmail")
    moderator_password: str = Field(alias="moderatorPassword", min_length=6)


class StaffBootstrapResponse(BaseModel):
    success: bool = True
    message: str
    admin: ProfileRead
    moderator: ProfileRead
