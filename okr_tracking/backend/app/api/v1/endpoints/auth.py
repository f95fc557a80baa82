from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db
from app.core.exceptions import CredentialsException, UserInactiveException
from app.core.security import TokenUtils
from app.crud.user import user as user_crud
from app.schemas.response import SuccessResponse
from app.schemas.token import TokenPairResponse, TokenRefreshRequest
from app.schemas.user import UserLoginResponse, UserResponse
from app.templates.api import ApiResponseTemplate

router = APIRouter()


@router.post("/login", response_model=SuccessResponse[UserLoginResponse])
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    """
    Inicio de sesión con formulario OAuth2 (username = email o username)
    """
    user = user_crud.authenticate(db, email=form_data.username, password=form_data.password)
    if not user:
        raise CredentialsException()

    tokens = TokenUtils.create_tokens_pair(
        user_id=user.id,
        email=user.email,
        role=user.role,
        department=user.department,
    )

    return ApiResponseTemplate.success(
        data={
            "user": UserResponse.model_validate(user).model_dump(),
            "tokens": tokens,
        },
        message="Inicio de sesión exitoso",
    )


@router.post("/refresh", response_model=SuccessResponse[TokenPairResponse])
async def refresh_token(
    token_data: TokenRefreshRequest,
    db: Session = Depends(get_db),
):
    try:
        payload = TokenUtils.decode_token(token_data.refresh_token)
    except ValueError:
        raise CredentialsException("Refresh token inválido o expirado")

    if payload.get("type") != "refresh" or payload.get("sub") is None:
        raise CredentialsException("Refresh token inválido o expirado")

    user = user_crud.get(db, id=int(payload["sub"]))
    if not user:
        raise CredentialsException("Usuario no válido")
    if not user.is_active:
        raise UserInactiveException()

    tokens = TokenUtils.create_tokens_pair(
        user_id=user.id,
        email=user.email,
        role=user.role,
        department=user.department,
    )
    return ApiResponseTemplate.success(data=tokens, message="Token refrescado")


@router.get("/me", response_model=SuccessResponse[UserResponse])
async def read_current_user(
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    user = user_crud.get(db, id=current_user["id"])
    return ApiResponseTemplate.success(
        data=UserResponse.model_validate(user).model_dump(),
        message="Usuario actual",
    )
