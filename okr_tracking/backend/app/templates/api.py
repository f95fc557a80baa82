from typing import Any, Dict, Optional

from app.core.exceptions import ObjectiveDomainError


class ApiResponseTemplate:
    """Utilitarios para dar forma a las respuestas API."""

    @staticmethod
    def success(
        data: Any = None,
        message: str = "Operación exitosa",
        status_code: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"success": True, "data": data, "message": message}
        meta = dict(metadata or {})
        if status_code:
            meta.setdefault("status_code", status_code)
        if meta:
            payload["metadata"] = meta
        return payload

    @staticmethod
    def paginated(
        data: Any,
        total: int,
        skip: int,
        limit: int,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "success": True,
            "data": data,
            "total": total,
            "skip": skip,
            "limit": limit,
        }
        if metadata:
            payload["metadata"] = metadata
        return payload

    @staticmethod
    def error(detail: str, status_code: int, metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "success": False,
            "detail": detail,
            "status_code": status_code,
        }
        if metadata:
            payload["metadata"] = metadata
        return payload

    @staticmethod
    def domain_error(exc: ObjectiveDomainError) -> Dict[str, Any]:
        """Envelope de error para las excepciones del motor de objetivos."""
        metadata: Dict[str, Any] = {"error_type": type(exc).__name__}
        child_level = getattr(exc, "child_level", None)
        parent_level = getattr(exc, "parent_level", None)
        if child_level and parent_level:
            metadata["levels"] = {"child": child_level, "parent": parent_level}
        return ApiResponseTemplate.error(exc.detail, exc.status_code, metadata)
