from pydantic import BaseModel, ConfigDict


class TokenPairResponse(BaseModel):
    """Schema para par de tokens (access + refresh)."""

    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "access_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                "refresh_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                "token_type": "Bearer",
                "expires_in": 1800,
            }
        }
    )


class TokenRefreshRequest(BaseModel):
    """Schema para refrescar el access token."""

    refresh_token: str
