import enum

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import backref, relationship
from sqlalchemy.sql import func

from app.models.base import Base, BaseModel


class ObjectiveLevel(str, enum.Enum):
    """Niveles de la jerarquía OKR, de más general a más específico"""
    COMPANY = "company"
    UNIT = "unit"
    DIVISION = "division"
    TEAM = "team"
    INDIVIDUAL = "individual"


class ObjectiveStatus(str, enum.Enum):
    """Estados del objetivo"""
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"
    ON_HOLD = "on_hold"


# Profundidad fija de cada nivel; un hijo siempre debe quedar más abajo que su padre.
LEVEL_ORDER = {
    ObjectiveLevel.COMPANY.value: 0,
    ObjectiveLevel.UNIT.value: 1,
    ObjectiveLevel.DIVISION.value: 2,
    ObjectiveLevel.TEAM.value: 3,
    ObjectiveLevel.INDIVIDUAL.value: 4,
}


def level_rank(level) -> int:
    """Profundidad de un nivel (acepta enum o string)."""
    return LEVEL_ORDER[ObjectiveLevel(level).value]


class Objective(BaseModel):
    """Nodo del árbol de objetivos.

    La relación padre/hijo se guarda como ``parent_id``; los hijos se consultan
    por ese índice. La colección ``children`` existe solo para que el borrado
    de un padre arrastre a todo su subárbol.
    """
    __tablename__ = "objectives"

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)

    # Jerarquía
    parent_id = Column(Integer, ForeignKey("objectives.id", ondelete="CASCADE"), nullable=True, index=True)
    level = Column(String(20), nullable=False, index=True)

    # Responsable
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    department = Column(String(100), nullable=True)

    # Período
    year = Column(Integer, nullable=False, index=True)
    quarter = Column(String(10), nullable=True, index=True)  # Q1..Q4, nulo = anual
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)

    # Progreso
    status = Column(String(20), nullable=False, default=ObjectiveStatus.ACTIVE.value, index=True)
    progress_percentage = Column(Float, nullable=False, default=0.0)
    is_featured = Column(Boolean, nullable=False, default=False)

    # Auditoría
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    updated_by = Column(Integer, nullable=True)

    parent = relationship(
        "Objective",
        remote_side="Objective.id",
        backref=backref("children", cascade="all"),
    )
    owner = relationship("User", foreign_keys=[owner_id])
    creator = relationship("User", foreign_keys=[created_by])
    kpi_links = relationship(
        "ObjectiveKPILink",
        back_populates="objective",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Objective(id={self.id}, title='{self.title}', level='{self.level}')>"


class ObjectiveKPILink(Base):
    """Vínculo ponderado objetivo-KPI (peso entre 0 y 1)."""
    __tablename__ = "objective_kpi_links"
    __table_args__ = (
        UniqueConstraint("objective_id", "kpi_id", name="uq_objective_kpi"),
    )

    id = Column(Integer, primary_key=True, index=True)
    objective_id = Column(Integer, ForeignKey("objectives.id", ondelete="CASCADE"), nullable=False, index=True)
    kpi_id = Column(Integer, ForeignKey("kpis.id", ondelete="CASCADE"), nullable=False, index=True)
    weight = Column(Float, nullable=False, default=1.0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    objective = relationship("Objective", back_populates="kpi_links")
    kpi = relationship("KPI", back_populates="objective_links")

    def __repr__(self) -> str:
        return f"<ObjectiveKPILink(objective_id={self.objective_id}, kpi_id={self.kpi_id}, weight={self.weight})>"
