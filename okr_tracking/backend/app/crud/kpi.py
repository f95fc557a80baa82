from typing import Optional

from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.crud.base import CRUDBase
from app.models.kpi import KPI


class CRUDKPI(CRUDBase[KPI, BaseModel, BaseModel]):
    """Lectura de KPIs; su ciclo de vida pertenece al subsistema de KPIs."""

    def get_progress(self, db: Session, kpi_id: int) -> Optional[float]:
        kpi = self.get(db, id=kpi_id)
        return kpi.progress_percentage if kpi else None


kpi_crud = CRUDKPI(KPI)
