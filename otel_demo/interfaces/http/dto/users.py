from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CredentialsRequestDTO(BaseModel):
    """Body of ``/register`` and ``/login``; presence is checked by the controller."""

    model_config = ConfigDict(extra="ignore")

    username: str | None = None
    password: str | None = None

    def missing_field(self) -> str | None:
        if not self.username:
            return "username"
        if not self.password:
            return "password"
        return None


class SessionRequestDTO(BaseModel):
    model_config = ConfigDict(extra="ignore", validate_by_name=True)

    session_id: str | None = Field(None, alias="sessionId")


class RegisterResponseDTO(BaseModel):
    message: str = "註冊成功"
    username: str


class LoginResponseDTO(BaseModel):
    message: str = "登入成功"
    session_id: str = Field(serialization_alias="sessionId")
    username: str


class LogoutResponseDTO(BaseModel):
    message: str = "登出成功"


class UserSummaryDTO(BaseModel):
    username: str


class UserListResponseDTO(BaseModel):
    count: int
    users: list[UserSummaryDTO]


class CurrentUserResponseDTO(BaseModel):
    username: str
    session_id: str = Field(serialization_alias="sessionId")
