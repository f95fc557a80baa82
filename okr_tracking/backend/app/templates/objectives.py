from typing import Any, Dict, List

from app.core.permissions import Permission, PermissionManager


class ObjectiveTemplate:
    """Metadatos de presentación para objetivos (estado, progreso, acciones)"""

    STATUS_INFO = {
        "active": {"color": "green", "label": "Activo"},
        "completed": {"color": "purple", "label": "Completado"},
        "abandoned": {"color": "red", "label": "Abandonado"},
        "on_hold": {"color": "yellow", "label": "En pausa"},
    }

    @staticmethod
    def _get_progress_color(progress: float) -> str:
        if progress >= 80:
            return "success"
        elif progress >= 50:
            return "warning"
        return "error"

    @staticmethod
    def details(objective: Dict[str, Any]) -> Dict[str, Any]:
        status = objective.get("status", "active")
        progress = objective.get("progress_percentage") or 0.0
        return {
            "status": ObjectiveTemplate.STATUS_INFO.get(status, ObjectiveTemplate.STATUS_INFO["active"]),
            "progress": {
                "value": progress,
                "label": f"{round(progress, 2)}%",
                "color": ObjectiveTemplate._get_progress_color(progress),
            },
        }

    @staticmethod
    def actions(objective: Dict[str, Any], current_user: Dict[str, Any]) -> List[str]:
        """Acciones disponibles para el usuario sobre el objetivo"""
        role = current_user.get("role")
        is_owner = objective.get("owner_id") == current_user.get("id")
        same_department = (
            objective.get("department") is not None
            and objective.get("department") == current_user.get("department")
        )

        actions = ["view", "recalculate"]
        if (
            is_owner
            or PermissionManager.has_permission(role, Permission.OBJECTIVES_EDIT_ANY)
            or (same_department and PermissionManager.has_permission(role, Permission.OBJECTIVES_EDIT_DEPARTMENT))
        ):
            actions.append("edit")
        if (
            is_owner
            or PermissionManager.has_permission(role, Permission.OBJECTIVES_DELETE_ANY)
            or (
                objective.get("created_by") == current_user.get("id")
                and PermissionManager.has_permission(role, Permission.OBJECTIVES_DELETE_CREATED)
            )
        ):
            actions.append("delete")
        if is_owner or PermissionManager.has_permission(role, Permission.OBJECTIVES_LINK_ANY_KPI):
            actions.append("link_kpi")
        if PermissionManager.has_permission(role, Permission.OBJECTIVES_MOVE):
            actions.append("move")
        return actions

    @staticmethod
    def create_objective_response(objective: Dict[str, Any], current_user: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "entity": "objective",
            "details": ObjectiveTemplate.details(objective),
            "actions": ObjectiveTemplate.actions(objective, current_user),
        }
