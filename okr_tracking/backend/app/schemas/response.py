from typing import Any, Dict, Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class SuccessResponse(BaseModel, Generic[T]):
    """Respuesta genérica para respuestas exitosas."""
    success: bool = True
    data: Optional[T] = None
    message: str = "Operación exitosa"
    metadata: Optional[Dict[str, Any]] = None


class PaginatedResponse(BaseModel, Generic[T]):
    """Respuesta paginada para listados."""
    success: bool = True
    data: T
    total: int
    skip: int
    limit: int
    metadata: Optional[Dict[str, Any]] = None


class ErrorResponse(BaseModel):
    """Respuesta en caso de error."""
    success: bool = False
    detail: str
    status_code: int
    metadata: Optional[Dict[str, Any]] = None
