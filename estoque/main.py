"""
Estoque - Main Application
API multi-empresa de estoque e checklists com identidade Supabase
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.middleware.base import BaseHTTPMiddleware

from estoque.core import settings
from estoque.database import init_db
from estoque.api import (
    auth_router,
    products_router,
    movements_router,
    suppliers_router,
    categories_router,
    checklists_router,
    dashboard_router,
    whatsapp_router,
    users_router,
    master_router
)
from estoque.services.storage import StorageError, NotFoundError
from estoque.services.identity_provider import IdentityProviderError

# Rate limiting
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from estoque.api.auth import limiter

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle do aplicativo"""
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    await init_db()

    yield

    logger.info("Shutting down...")


# Middleware de headers de seguranca
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adiciona headers de seguranca em todas as respostas"""
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # Respostas de autenticação nunca ficam em cache
        if "/auth" in request.url.path:
            response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate"
            response.headers["Pragma"] = "no-cache"
        return response


# Cria aplicação
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Multi-company inventory and checklist API",
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None
)

# Configura rate limiter na aplicacao
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    """Falhas dos schemas de inserção gerados a partir das tabelas"""
    return JSONResponse(
        status_code=400,
        content={
            "message": "Validation error",
            "errors": exc.errors(include_url=False, include_context=False, include_input=False)
        }
    )


@app.exception_handler(IdentityProviderError)
async def identity_provider_error_handler(request: Request, exc: IdentityProviderError):
    logger.error(f"Identity provider error on {request.url.path}: {exc}")
    return JSONResponse(status_code=400, content={"detail": str(exc)})


# Headers de seguranca (adicionar ANTES do CORS)
app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(auth_router, prefix="/api")
app.include_router(products_router, prefix="/api")
app.include_router(movements_router, prefix="/api")
app.include_router(suppliers_router, prefix="/api")
app.include_router(categories_router, prefix="/api")
app.include_router(checklists_router, prefix="/api")
app.include_router(dashboard_router, prefix="/api")
app.include_router(whatsapp_router, prefix="/api")
app.include_router(users_router, prefix="/api")
app.include_router(master_router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


@app.get("/health")
async def health():
    """Health check"""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "estoque.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )
