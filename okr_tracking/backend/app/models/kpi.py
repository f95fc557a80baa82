from sqlalchemy import Column, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.models.base import BaseModel


class KPI(BaseModel):
    """KPI del subsistema de seguimiento; aquí solo interesa su progreso."""
    __tablename__ = "kpis"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    year = Column(Integer, nullable=False, index=True)
    quarter = Column(String(10), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    target_value = Column(String(100), nullable=True)
    current_value = Column(String(100), nullable=True)
    progress_percentage = Column(Float, nullable=True)  # nulo = sin medición
    status = Column(String(20), default="draft", nullable=False, index=True)

    user = relationship("User", foreign_keys=[user_id])
    objective_links = relationship(
        "ObjectiveKPILink",
        back_populates="kpi",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<KPI(id={self.id}, title='{self.title}', progress={self.progress_percentage})>"
