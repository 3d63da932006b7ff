"""
Estoque - Configuration
Carregada do ambiente / arquivo .env
"""
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional
from pathlib import Path
from dotenv import load_dotenv

# Carrega .env da raiz do projeto antes de ler as variáveis
env_file = Path(__file__).parent.parent.parent / ".env"
if env_file.exists():
    load_dotenv(env_file, override=True)


class Settings(BaseSettings):
    # App
    APP_NAME: str = "Estoque"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 5000

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./estoque.db"

    # Supabase (identidade + realtime). Placeholders quando não configurado
    SUPABASE_URL: str = "https://your-project.supabase.co"
    SUPABASE_ANON_KEY: str = "your-anon-key"
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None
    # Quando definido, tokens são validados localmente (HS256)
    SUPABASE_JWT_SECRET: Optional[str] = None
    SUPABASE_JWT_AUDIENCE: str = "authenticated"

    # Cliente HTTP da aplicação
    API_BASE_URL: str = "http://localhost:5000"
    SYNC_USER_PATH: str = "/api/auth/sync-user"

    # Cache de queries do cliente
    QUERY_STALE_TIME_SECONDS: float = 30.0
    QUERY_GC_TIME_SECONDS: float = 60.0
    QUERY_REFETCH_ON_WINDOW_FOCUS: bool = True

    # Sincronização de usuários
    MASTER_EMAIL: str = "gerencia@loggme.com.br"
    DEFAULT_COMPANY_ID: Optional[int] = None
    SYNC_RATE_LIMIT: str = "30/minute"

    # CORS
    CORS_ORIGINS: list = ["*"]

    class Config:
        extra = "ignore"
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
