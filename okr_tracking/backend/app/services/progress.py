import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import StructuralIntegrityError
from app.crud.kpi import kpi_crud
from app.crud.objective import objective_crud
from app.models.objective import Objective

logger = logging.getLogger(__name__)

METHOD_CHILDREN = "children"
METHOD_KPIS = "kpis"
METHOD_MANUAL = "manual"


class ProgressCalculator:
    """Deriva el progreso de un objetivo y lo propaga hacia la raíz.

    Precedencia fija: hijos > KPIs vinculados > valor manual.
    """

    def __init__(self, db: Session, max_depth: Optional[int] = None):
        self.db = db
        self.max_depth = max_depth or settings.MAX_HIERARCHY_DEPTH

    def calculation_method(self, objective_id: int) -> Optional[str]:
        if not objective_crud.get(self.db, id=objective_id):
            return None
        if objective_crud.count_children(self.db, objective_id):
            return METHOD_CHILDREN
        if objective_crud.count_links(self.db, objective_id):
            return METHOD_KPIS
        return METHOD_MANUAL

    def _kpi_weighted_average(self, objective_id: int) -> float:
        links = objective_crud.get_links(self.db, objective_id)
        total_weight = sum(link.weight for link in links)
        if total_weight == 0:
            return 0.0

        weighted_sum = 0.0
        for link in links:
            kpi_progress = kpi_crud.get_progress(self.db, link.kpi_id)
            weighted_sum += (kpi_progress or 0.0) * link.weight
        return weighted_sum / total_weight

    def _compute(self, objective: Objective) -> float:
        children = objective_crud.get_children(self.db, objective.id)
        if children:
            return sum(child.progress_percentage or 0.0 for child in children) / len(children)

        if objective_crud.count_links(self.db, objective.id):
            return self._kpi_weighted_average(objective.id)

        return objective.progress_percentage or 0.0

    def calculate_progress(self, objective_id: int) -> Optional[float]:
        """Progreso derivado sin persistir; ``None`` si el objetivo no existe."""
        objective = objective_crud.get(self.db, id=objective_id)
        if not objective:
            return None
        return self._compute(objective)

    def recalculate_progress(self, objective_id: int) -> Optional[Objective]:
        """Recalcula y persiste el objetivo y luego cada ancestro hasta la raíz.

        Cada nivel se confirma antes de leer al padre. Devuelve el objetivo
        inicial actualizado, o ``None`` si no existe.
        """
        objective = objective_crud.get(self.db, id=objective_id)
        if not objective:
            return None

        first: Optional[Objective] = None
        current: Optional[Objective] = objective
        steps = 0

        while current is not None:
            if steps >= self.max_depth:
                logger.warning("Cascada de progreso abortada en %s: profundidad máxima", objective_id)
                raise StructuralIntegrityError(
                    f"La cascada de progreso desde {objective_id} excede la profundidad máxima ({self.max_depth})"
                )

            progress = self._compute(current)
            current = objective_crud.set_progress(self.db, db_obj=current, progress=progress)
            logger.debug("Progreso de objetivo %s actualizado a %.2f", current.id, progress)
            if first is None:
                first = current
            steps += 1

            parent_id = current.parent_id
            if parent_id is None:
                break
            parent = objective_crud.get(self.db, id=parent_id)
            if parent is None:
                logger.warning(
                    "Cascada detenida: objetivo %s apunta a un padre inexistente (%s)",
                    current.id,
                    parent_id,
                )
                break
            current = parent

        self.db.refresh(first)
        return first

    def recalculate_for_kpi(self, kpi_id: int) -> List[Objective]:
        """Recalcula, con cascada, cada objetivo vinculado al KPI."""
        updated = []
        for link in objective_crud.get_links_for_kpi(self.db, kpi_id):
            objective = self.recalculate_progress(link.objective_id)
            if objective is not None:
                updated.append(objective)
        logger.info("Recalculados %d objetivos vinculados al KPI %s", len(updated), kpi_id)
        return updated
