from typing import Optional

from pydantic import BaseModel, ConfigDict

from app.schemas.token import TokenPairResponse


class UserResponse(BaseModel):
    id: int
    email: str
    username: str
    full_name: Optional[str] = None
    role: str
    department: Optional[str] = None
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class UserLoginResponse(BaseModel):
    user: UserResponse
    tokens: TokenPairResponse
