from typing import Generator, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer, OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import (
    CredentialsException,
    TokenExpiredException,
    TokenInvalidException,
    UserInactiveException,
)
from app.core.permissions import Permission, PermissionManager
from app.crud.user import user as user_crud
from app.database import SessionLocal


oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_STR}/auth/login",
    auto_error=False,
)

http_bearer = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


async def get_current_user(
    db: Session = Depends(get_db),
    token: Optional[str] = Depends(oauth2_scheme),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
) -> dict:
    auth_token = token
    if not auth_token and credentials:
        auth_token = credentials.credentials

    if not auth_token:
        raise CredentialsException("Token no proporcionado")

    try:
        payload = jwt.decode(
            auth_token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
        )
        user_id: Optional[str] = payload.get("sub")
        token_type: Optional[str] = payload.get("type")
        if user_id is None:
            raise CredentialsException("Token inválido: sub claim faltante")
        if token_type != "access":
            raise CredentialsException("Token no es de tipo access")
    except jwt.ExpiredSignatureError:
        raise TokenExpiredException()
    except JWTError:
        raise TokenInvalidException()

    user = user_crud.get(db, id=int(user_id))
    if user is None:
        raise CredentialsException("Usuario no encontrado")

    if not user.is_active:
        raise UserInactiveException()

    return {
        "id": user.id,
        "email": user.email,
        "username": user.username,
        "role": user.role,
        "department": user.department,
        "full_name": user.full_name,
    }


def require_permission(permission: Permission):
    async def permission_dependency(
        current_user: dict = Depends(get_current_user),
    ) -> dict:
        PermissionManager.check_permission(current_user["role"], permission)
        return current_user

    return permission_dependency
