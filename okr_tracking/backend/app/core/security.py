from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class TokenUtils:
    """Utilidades para manejo de tokens JWT."""

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """Verifica que la contraseña plana coincida con su hash."""
        return pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def get_password_hash(password: str) -> str:
        """Genera el hash de una contraseña."""
        return pwd_context.hash(password)

    @staticmethod
    def _encode(data: Dict[str, Any], expire: datetime, token_type: str) -> str:
        to_encode = data.copy()
        to_encode.update(
            {
                "exp": expire,
                "iat": datetime.now(timezone.utc),
                "type": token_type,
            }
        )
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def create_access_token(
        data: Dict[str, Any],
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        """Crea un token de acceso."""
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        )
        return TokenUtils._encode(data, expire, "access")

    @staticmethod
    def create_refresh_token(
        data: Dict[str, Any],
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        """Crea un token de refresco."""
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
        )
        return TokenUtils._encode(data, expire, "refresh")

    @staticmethod
    def decode_token(token: str) -> Dict[str, Any]:
        """Decodifica y valida un token JWT."""
        try:
            return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        except JWTError as exc:
            raise ValueError(f"Token inválido: {str(exc)}") from exc

    @staticmethod
    def create_tokens_pair(
        user_id: int,
        email: str,
        role: str,
        department: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Genera par de tokens (access + refresh)."""
        payload = {
            "sub": str(user_id),
            "email": email,
            "role": role,
            "department": department,
        }

        access_token = TokenUtils.create_access_token(payload)
        refresh_token = TokenUtils.create_refresh_token(
            {"sub": str(user_id), "email": email}
        )

        return {
            "access_token": access_token,
            "refresh_token": refresh_token,
            "token_type": settings.TOKEN_TYPE,
            "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        }
