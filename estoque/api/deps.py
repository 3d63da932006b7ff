"""
Estoque - API dependencies
Autenticação por bearer token do Supabase e isolamento por empresa
"""
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from estoque.core import verify_access_token, local_token_verification_enabled
from estoque.database import get_db
from estoque.models import User, UserRole, COMPANY_MANAGER_ROLES
from estoque.schemas import ExternalUser
from estoque.services import storage
from estoque.services.identity_provider import IdentityProvider, get_identity_provider

security = HTTPBearer(auto_error=False)


def external_user_from_claims(claims: Dict[str, Any]) -> Optional[ExternalUser]:
    """Identidade a partir das claims de um JWT do Supabase já validado"""
    try:
        return ExternalUser.model_validate({
            "id": claims.get("sub"),
            "email": claims.get("email"),
            "aud": claims.get("aud"),
            "role": claims.get("role"),
            "app_metadata": claims.get("app_metadata"),
            "user_metadata": claims.get("user_metadata"),
        })
    except ValidationError:
        return None


async def resolve_external_user(token: str, provider: IdentityProvider) -> Optional[ExternalUser]:
    """
    Identidade externa dona do token, com email e app_metadata verificados.
    Com SUPABASE_JWT_SECRET a validação é local; sem ele, pergunta ao Supabase.
    """
    if local_token_verification_enabled():
        claims = verify_access_token(token)
        return external_user_from_claims(claims) if claims else None

    return await provider.get_user(token)


async def get_bearer_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> ExternalUser:
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No authorization token provided"
        )

    external = await resolve_external_user(credentials.credentials, provider)
    if not external:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token"
        )
    return external


async def get_current_user(
    external: ExternalUser = Depends(get_bearer_user),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Dependency para obter o usuário local autenticado"""
    user = await storage.get_user_by_supabase_id(db, external.id)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User profile not found"
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is disabled"
        )

    return user


async def get_company_user(user: User = Depends(get_current_user)) -> User:
    """Usuário vinculado a uma empresa (todas as rotas de dados)"""
    if user.company_id is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is not linked to a company"
        )
    return user


async def get_company_manager(user: User = Depends(get_company_user)) -> User:
    if user.role not in COMPANY_MANAGER_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only company admins and managers can do this"
        )
    return user


async def get_master_user(user: User = Depends(get_current_user)) -> User:
    if user.role != UserRole.MASTER:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only MASTER users can access this resource"
        )
    return user


def with_company(payload: Dict[str, Any], company_id: int, **extra) -> Dict[str, Any]:
    """Payload do cliente com a empresa (e usuário) do token, nunca do corpo"""
    data = {k: v for k, v in payload.items() if k not in ("companyId", "company_id", "userId", "user_id")}
    data["companyId"] = company_id
    data.update(extra)
    return data
