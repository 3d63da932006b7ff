"""
Estoque - Security
Hash de senhas e validação dos tokens emitidos pelo Supabase
"""
from datetime import datetime, timedelta
from typing import Optional

from jose import jwt, JWTError
import bcrypt

from .config import settings


def get_password_hash(password: str) -> str:
    """Gera hash bcrypt do password"""
    return bcrypt.hashpw(
        password.encode('utf-8'),
        bcrypt.gensalt()
    ).decode('utf-8')


def local_token_verification_enabled() -> bool:
    return bool(settings.SUPABASE_JWT_SECRET)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Emite um JWT no mesmo formato do Supabase (HS256, aud=authenticated).
    Usado em ambientes de desenvolvimento e testes.
    """
    if not settings.SUPABASE_JWT_SECRET:
        raise RuntimeError("SUPABASE_JWT_SECRET não configurado")

    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(hours=1))
    to_encode.update({"exp": expire, "aud": settings.SUPABASE_JWT_AUDIENCE})

    return jwt.encode(to_encode, settings.SUPABASE_JWT_SECRET, algorithm="HS256")


def verify_access_token(token: str) -> Optional[dict]:
    """Valida localmente o JWT do Supabase. None se inválido ou expirado."""
    if not settings.SUPABASE_JWT_SECRET:
        return None
    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=["HS256"],
            audience=settings.SUPABASE_JWT_AUDIENCE,
        )
    except JWTError:
        return None
