from datetime import date, datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.models.objective import ObjectiveLevel, ObjectiveStatus

Quarter = Literal["Q1", "Q2", "Q3", "Q4"]


# ========== LINK SCHEMAS ==========
class ObjectiveKPILinkBase(BaseModel):
    """Schema base para el vínculo objetivo-KPI"""
    kpi_id: int
    weight: float = Field(1.0, ge=0.0, le=1.0, description="Peso de la contribución del KPI (0-1)")


class ObjectiveKPILinkCreate(ObjectiveKPILinkBase):
    """Schema para vincular un KPI"""
    model_config = ConfigDict(json_schema_extra={"example": {"kpi_id": 12, "weight": 0.5}})


class ObjectiveKPILinkResponse(ObjectiveKPILinkBase):
    id: int
    objective_id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ========== BASE SCHEMAS ==========
class ObjectiveBase(BaseModel):
    """Schema base para Objetivo"""
    title: str = Field(..., min_length=1, max_length=200, description="Título del objetivo")
    description: Optional[str] = Field(None, description="Descripción detallada")
    level: ObjectiveLevel = Field(..., description="Nivel jerárquico")
    parent_id: Optional[int] = Field(None, description="ID del objetivo padre")
    department: Optional[str] = Field(None, max_length=100)
    year: int = Field(..., ge=2020, le=2100)
    quarter: Optional[Quarter] = Field(None, description="Trimestre; nulo = anual")
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: ObjectiveStatus = ObjectiveStatus.ACTIVE

    model_config = ConfigDict(use_enum_values=True)

    @model_validator(mode="after")
    def validate_dates(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("La fecha de fin no puede ser anterior a la fecha de inicio")
        return self


# ========== CREATE SCHEMA ==========
class ObjectiveCreate(ObjectiveBase):
    """Schema para creación de Objetivo; sin owner_id el dueño es el creador"""
    owner_id: Optional[int] = None

    model_config = ConfigDict(
        use_enum_values=True,
        json_schema_extra={
            "example": {
                "title": "Aumentar la retención de clientes",
                "level": "division",
                "parent_id": 3,
                "department": "Ventas",
                "year": 2025,
                "quarter": "Q2",
            }
        },
    )


# ========== UPDATE SCHEMA ==========
class ObjectiveUpdate(BaseModel):
    """Schema para actualización parcial de Objetivo"""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    level: Optional[ObjectiveLevel] = None
    parent_id: Optional[int] = None
    department: Optional[str] = Field(None, max_length=100)
    year: Optional[int] = Field(None, ge=2020, le=2100)
    quarter: Optional[Quarter] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[ObjectiveStatus] = None
    progress_percentage: Optional[float] = Field(None, ge=0.0, le=100.0)
    is_featured: Optional[bool] = None
    owner_id: Optional[int] = None

    model_config = ConfigDict(use_enum_values=True)


# ========== RESPONSE SCHEMAS ==========
class ObjectiveResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    level: str
    parent_id: Optional[int] = None
    owner_id: int
    department: Optional[str] = None
    year: int
    quarter: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: str
    progress_percentage: float
    is_featured: bool
    created_at: datetime
    updated_at: Optional[datetime] = None
    created_by: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class ObjectiveDetail(ObjectiveResponse):
    """Objetivo con datos de relaciones"""
    owner_name: Optional[str] = None
    parent_title: Optional[str] = None
    children_count: int = 0
    kpi_count: int = 0


class ObjectiveTreeNode(BaseModel):
    """Nodo del árbol (estructura recursiva)"""
    id: int
    title: str
    level: str
    progress_percentage: float
    status: str
    owner_id: int
    owner_name: Optional[str] = None
    children: List["ObjectiveTreeNode"] = Field(default_factory=list)


ObjectiveTreeNode.model_rebuild()


class ObjectiveGanttItem(BaseModel):
    id: int
    title: str
    level: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    progress_percentage: float
    status: str
    parent_id: Optional[int] = None
    dependencies: List[int] = Field(default_factory=list, description="IDs de los hijos directos")

    model_config = ConfigDict(from_attributes=True)


# ========== QUERY/FILTER SCHEMAS ==========
class ObjectiveFilter(BaseModel):
    """Schema para filtrar objetivos"""
    owner_id: Optional[int] = None
    level: Optional[ObjectiveLevel] = None
    year: Optional[int] = None
    quarter: Optional[Quarter] = None
    status: Optional[ObjectiveStatus] = None
    department: Optional[str] = None
    is_featured: Optional[bool] = None
    search: Optional[str] = None

    model_config = ConfigDict(use_enum_values=True)


class ObjectiveStats(BaseModel):
    total: int = 0
    by_level: Dict[str, int] = Field(default_factory=dict)
    by_status: Dict[str, int] = Field(default_factory=dict)
    average_progress: float = 0.0


class ProgressCalculation(BaseModel):
    objective_id: int
    progress_percentage: float
    calculation_method: Literal["children", "kpis", "manual"]
    child_count: int = 0
    kpi_count: int = 0
    last_calculated: Optional[datetime] = None
