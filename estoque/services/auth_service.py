"""
Estoque - Auth Service
Liga a identidade do Supabase ao usuário local da aplicação
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from estoque.core.config import settings
from estoque.models import User, UserRole
from estoque.schemas import ExternalUser, InsertCompany, InsertUser, SignUpRequest
from estoque.services import storage
from estoque.services.identity_provider import IdentityProvider
from estoque.services.storage import StorageError, NotFoundError

logger = logging.getLogger(__name__)


async def sync_user_from_auth(db: AsyncSession, external: ExternalUser) -> User:
    """
    Garante que a identidade externa tenha um usuário local.

    Ordem: vínculo por supabase_user_id, depois por email (usuário criado
    antes do primeiro login), por fim cria. Repetir a chamada é seguro.
    `external` precisa vir do token verificado, nunca do corpo da requisição.
    """
    user = await storage.get_user_by_supabase_id(db, external.id)
    if user:
        logger.debug(f"Usuário existente: {user.email}")
        return user

    if not external.email:
        raise StorageError("External user has no email")

    user = await storage.get_user_by_email(db, external.email)
    if user:
        if user.supabase_user_id and user.supabase_user_id != external.id:
            raise StorageError("Email already linked to another identity")
        user.supabase_user_id = external.id
        await db.flush()
        logger.info(f"Usuário {user.email} vinculado à identidade {external.id}")
        return user

    is_master = external.email.lower() == settings.MASTER_EMAIL.lower()

    company_id = None
    if not is_master:
        # app_metadata só é gravável pela service role; user_metadata não é confiável
        company_id = external.app_metadata.get("company_id") or settings.DEFAULT_COMPANY_ID
        if company_id is None:
            raise StorageError("No company assigned to user")

        company = await storage.get_company(db, company_id)
        if not company or not company.is_active:
            raise NotFoundError("Company not found")
        await storage.ensure_user_capacity(db, company)

    payload = InsertUser.model_validate({
        "email": external.email,
        "name": "Admin Master" if is_master else external.display_name,
        "supabaseUserId": external.id,
        "companyId": company_id,
        "role": UserRole.MASTER if is_master else UserRole.OPERADOR,
        "isActive": True,
    })
    user = await storage.create_user(db, payload.model_dump(exclude_unset=True))

    logger.info(f"Novo usuário criado via sync: {user.email} (role={user.role.value})")
    return user


async def create_user_complete(db: AsyncSession, provider: IdentityProvider, request: SignUpRequest) -> User:
    """
    Cadastro atômico: empresa + conta no Supabase Auth + usuário admin local.
    Se o usuário local falhar, a conta externa é removida.
    """
    if await storage.get_user_by_email(db, request.email):
        raise StorageError("Email already registered")

    company_payload = InsertCompany.model_validate(request.company_data.model_dump())
    company = await storage.create_company(db, company_payload.model_dump(exclude_unset=True))
    logger.info(f"Empresa criada no cadastro: {company.id} - {company.name}")

    external = await provider.create_user(request.email, request.password, {"name": request.name})

    try:
        payload = InsertUser.model_validate({
            "email": request.email,
            "name": request.name,
            "supabaseUserId": external.id,
            "companyId": company.id,
            "role": UserRole.ADMIN,
        })
        user = await storage.create_user(db, payload.model_dump(exclude_unset=True))
    except Exception:
        await provider.delete_user(external.id)
        raise

    return user
