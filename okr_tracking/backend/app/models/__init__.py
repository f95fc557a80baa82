from .base import Base, BaseModel
from .user import User, UserRole
from .kpi import KPI
from .objective import (
    LEVEL_ORDER,
    Objective,
    ObjectiveKPILink,
    ObjectiveLevel,
    ObjectiveStatus,
)

__all__ = [
    "Base",
    "BaseModel",
    "User",
    "UserRole",
    "KPI",
    "Objective",
    "ObjectiveKPILink",
    "ObjectiveLevel",
    "ObjectiveStatus",
    "LEVEL_ORDER",
]
