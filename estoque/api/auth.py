"""
Estoque - Auth API
Sincronização da identidade Supabase com o usuário local
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from estoque.core import settings
from estoque.database import get_db
from estoque.models import User
from estoque.schemas import ExternalUser, SyncUserRequest, SyncUserResponse, SignUpRequest
from estoque.services import auth_service, storage
from estoque.services.identity_provider import IdentityProvider, get_identity_provider
from estoque.api.deps import get_bearer_user, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

limiter = Limiter(key_func=get_remote_address)


@router.post("/sync-user", response_model=SyncUserResponse)
@limiter.limit(settings.SYNC_RATE_LIMIT)
async def sync_user(
    request: Request,
    body: SyncUserRequest,
    external: ExternalUser = Depends(get_bearer_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Garante o usuário local para a identidade do token.
    401 quando o token não pertence ao usuário enviado. Do corpo só o id é
    usado; email e app_metadata vêm da identidade verificada.
    """
    if external.id != body.user.id:
        logger.warning(f"Sync recusado: token de {external.id} para usuário {body.user.id}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token does not match user"
        )

    user = await auth_service.sync_user_from_auth(db, external)

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is disabled"
        )

    return {"user": user.to_dict()}


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(
    body: SignUpRequest,
    db: AsyncSession = Depends(get_db),
    provider: IdentityProvider = Depends(get_identity_provider)
):
    """Cadastro de nova empresa com seu usuário admin"""
    user = await auth_service.create_user_complete(db, provider, body)
    company = await storage.get_company(db, user.company_id)

    return {
        "user": user.to_dict(),
        "company": company.to_dict() if company else None
    }


@router.get("/me")
async def get_me(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Usuário atual com a empresa"""
    company = await storage.get_company(db, user.company_id) if user.company_id else None
    return {
        "user": user.to_dict(),
        "company": company.to_dict() if company else None
    }
