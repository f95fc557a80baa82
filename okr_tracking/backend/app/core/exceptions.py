from typing import Optional

from fastapi import HTTPException, status


class AuthException(HTTPException):
    """Excepción base para errores de autenticación."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        headers: dict | None = None,
    ):
        super().__init__(
            status_code=status_code,
            detail=detail,
            headers=headers or {"WWW-Authenticate": "Bearer"},
        )


class CredentialsException(AuthException):
    """Credenciales inválidas."""

    def __init__(self, detail: str = "Credenciales inválidas"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
        )


class TokenExpiredException(AuthException):
    """Token expirado."""

    def __init__(self, detail: str = "Token expirado"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
        )


class TokenInvalidException(AuthException):
    """Token inválido."""

    def __init__(self, detail: str = "Token inválido"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
        )


class InsufficientPermissionsException(AuthException):
    """Permisos insuficientes."""

    def __init__(self, detail: str = "Permisos insuficientes"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
        )


class UserInactiveException(AuthException):
    """Usuario inactivo."""

    def __init__(self, detail: str = "Usuario inactivo"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )


# ========== ERRORES DE DOMINIO (jerarquía de objetivos) ==========
class ObjectiveDomainError(Exception):
    """Error base del motor de objetivos; main.py lo traduce a ErrorResponse."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_detail: str = "Operación inválida sobre objetivos"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class NotFoundError(ObjectiveDomainError):
    """Identificador inexistente."""

    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Objetivo no encontrado"


class ParentNotFoundError(NotFoundError):
    """El objetivo padre indicado no existe."""

    default_detail = "Objetivo padre no encontrado"


class HierarchyViolationError(ObjectiveDomainError):
    """El nivel del hijo no es estrictamente más profundo que el del padre."""

    default_detail = "Jerarquía de niveles inválida"

    def __init__(self, child_level: Optional[str] = None, parent_level: Optional[str] = None, detail: Optional[str] = None):
        self.child_level = child_level
        self.parent_level = parent_level
        if detail is None and child_level and parent_level:
            detail = f"Jerarquía inválida: {child_level} no puede ser hijo de {parent_level}"
        super().__init__(detail)


class SelfReferenceError(ObjectiveDomainError):
    """Intento de mover un objetivo bajo sí mismo."""

    default_detail = "No se puede mover un objetivo a sí mismo"


class CircularReferenceError(ObjectiveDomainError):
    """El nuevo padre es descendiente del objetivo a mover."""

    default_detail = "No se puede crear una referencia circular"


class StructuralIntegrityError(ObjectiveDomainError):
    """Cadena de padres corrupta (ciclo o profundidad excesiva)."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Integridad estructural comprometida en la jerarquía de objetivos"
