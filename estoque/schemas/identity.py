"""
Estoque - External identity schemas
Tipos explícitos para os payloads que cruzam a fronteira Supabase/API
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AuthEvent(str, Enum):
    """Eventos emitidos pelo provedor de identidade"""
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"
    USER_DELETED = "USER_DELETED"
    MFA_CHALLENGE_VERIFIED = "MFA_CHALLENGE_VERIFIED"


class ExternalUserMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    company_id: Optional[int] = None


class ExternalUser(BaseModel):
    """Usuário como o Supabase o entrega"""
    model_config = ConfigDict(extra="allow")

    id: str = Field(..., min_length=1)
    email: Optional[str] = None
    aud: Optional[str] = None
    role: Optional[str] = None
    user_metadata: ExternalUserMetadata = Field(default_factory=ExternalUserMetadata)
    app_metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None

    @field_validator("user_metadata", "app_metadata", mode="before")
    @classmethod
    def none_as_empty(cls, v):
        return {} if v is None else v

    @property
    def display_name(self) -> str:
        if self.user_metadata.name:
            return self.user_metadata.name
        if self.email:
            return self.email.split("@")[0]
        return "Usuário"


class ExternalSession(BaseModel):
    """Sessão do provedor (tokens + usuário)"""
    model_config = ConfigDict(extra="allow")

    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    expires_in: Optional[int] = None
    expires_at: Optional[int] = None
    user: Optional[ExternalUser] = None


class SyncUserRequest(BaseModel):
    """POST /api/auth/sync-user"""
    user: ExternalUser


class SyncUserResponse(BaseModel):
    user: Dict[str, Any]


def to_external_user(payload: Any) -> Optional[ExternalUser]:
    """Converte o objeto do SDK (pydantic ou dict) para ExternalUser"""
    if payload is None:
        return None
    if isinstance(payload, ExternalUser):
        return payload
    if hasattr(payload, "model_dump"):
        payload = payload.model_dump(mode="json")
    return ExternalUser.model_validate(payload)


def to_external_session(payload: Any) -> Optional[ExternalSession]:
    if payload is None:
        return None
    if isinstance(payload, ExternalSession):
        return payload
    if hasattr(payload, "model_dump"):
        payload = payload.model_dump(mode="json")
    return ExternalSession.model_validate(payload)
