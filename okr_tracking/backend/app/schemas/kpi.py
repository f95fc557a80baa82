from typing import Optional

from pydantic import BaseModel, ConfigDict


class KPIBrief(BaseModel):
    """Vista mínima de un KPI vinculado a objetivos"""
    id: int
    title: str
    user_id: int
    year: int
    quarter: str
    status: str
    progress_percentage: Optional[float] = None

    model_config = ConfigDict(from_attributes=True)


class LinkedKPI(KPIBrief):
    """KPI con el peso de su vínculo"""
    weight: float


class KPIObjectiveLink(BaseModel):
    """Objetivo al que contribuye un KPI"""
    objective_id: int
    objective_title: str
    level: str
    weight: float
    progress_percentage: float
