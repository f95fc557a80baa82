from enum import Enum
from typing import Dict, Set

from app.core.exceptions import InsufficientPermissionsException
from app.models.objective import ObjectiveLevel, level_rank
from app.models.user import UserRole


class Permission(str, Enum):
    """Enumeración de permisos del sistema."""

    OBJECTIVES_VIEW = "objectives:view"
    OBJECTIVES_VIEW_ALL = "objectives:view_all"
    OBJECTIVES_CREATE = "objectives:create"
    OBJECTIVES_EDIT_ANY = "objectives:edit_any"
    OBJECTIVES_EDIT_DEPARTMENT = "objectives:edit_department"
    OBJECTIVES_DELETE_ANY = "objectives:delete_any"
    OBJECTIVES_DELETE_CREATED = "objectives:delete_created"
    OBJECTIVES_MOVE = "objectives:move"
    OBJECTIVES_LINK_ANY_KPI = "objectives:link_any_kpi"
    OBJECTIVES_RECALCULATE = "objectives:recalculate"
    OBJECTIVES_VIEW_STATS = "objectives:view_stats"


class ResourceScope(str, Enum):
    GLOBAL = "global"
    DEPARTMENT = "department"
    OWN = "own"


class PermissionManager:
    ROLE_PERMISSIONS: Dict[str, Set[Permission]] = {
        UserRole.ADMIN.value: set(Permission),
        UserRole.MANAGER.value: {
            Permission.OBJECTIVES_VIEW,
            Permission.OBJECTIVES_VIEW_ALL,
            Permission.OBJECTIVES_CREATE,
            Permission.OBJECTIVES_EDIT_DEPARTMENT,
            Permission.OBJECTIVES_DELETE_CREATED,
            Permission.OBJECTIVES_LINK_ANY_KPI,
            Permission.OBJECTIVES_RECALCULATE,
            Permission.OBJECTIVES_VIEW_STATS,
        },
        UserRole.EMPLOYEE.value: {
            Permission.OBJECTIVES_VIEW,
            Permission.OBJECTIVES_CREATE,
            Permission.OBJECTIVES_RECALCULATE,
            Permission.OBJECTIVES_VIEW_STATS,
        },
    }

    ROLE_SCOPES: Dict[str, ResourceScope] = {
        UserRole.ADMIN.value: ResourceScope.GLOBAL,
        UserRole.MANAGER.value: ResourceScope.DEPARTMENT,
        UserRole.EMPLOYEE.value: ResourceScope.OWN,
    }

    # Nivel más alto (menos profundo) que cada rol puede crear.
    LEVEL_CEILINGS: Dict[str, ObjectiveLevel] = {
        UserRole.ADMIN.value: ObjectiveLevel.COMPANY,
        UserRole.MANAGER.value: ObjectiveLevel.UNIT,
        UserRole.EMPLOYEE.value: ObjectiveLevel.INDIVIDUAL,
    }

    LEVEL_CEILING_MESSAGES: Dict[str, str] = {
        UserRole.MANAGER.value: "Los managers no pueden crear objetivos de nivel company",
        UserRole.EMPLOYEE.value: "Los empleados solo pueden crear objetivos de nivel individual",
    }

    @classmethod
    def get_role_permissions(cls, role_name: str) -> Set[Permission]:
        return cls.ROLE_PERMISSIONS.get(role_name, set())

    @classmethod
    def has_permission(cls, role_name: str, permission: Permission) -> bool:
        return permission in cls.get_role_permissions(role_name)

    @classmethod
    def check_permission(cls, role_name: str, permission: Permission) -> bool:
        if not cls.has_permission(role_name, permission):
            raise InsufficientPermissionsException(f"Se requiere permiso: {permission.value}")
        return True

    @classmethod
    def get_scope(cls, role_name: str) -> ResourceScope:
        return cls.ROLE_SCOPES.get(role_name, ResourceScope.OWN)

    @classmethod
    def can_create_level(cls, role_name: str, level: str) -> bool:
        ceiling = cls.LEVEL_CEILINGS.get(role_name, ObjectiveLevel.INDIVIDUAL)
        return level_rank(level) >= level_rank(ceiling)

    @classmethod
    def check_level_ceiling(cls, role_name: str, level: str) -> bool:
        if not cls.can_create_level(role_name, level):
            raise InsufficientPermissionsException(
                cls.LEVEL_CEILING_MESSAGES.get(
                    role_name, f"El rol {role_name} no puede crear objetivos de nivel {level}"
                )
            )
        return True
