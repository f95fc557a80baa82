from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import asc, desc, func, or_
from sqlalchemy.orm import Session

from app.crud.base import CRUDBase
from app.models.objective import Objective, ObjectiveKPILink
from app.schemas.objective import ObjectiveCreate, ObjectiveFilter, ObjectiveUpdate

ORDERABLE_COLUMNS = {
    "id",
    "title",
    "level",
    "year",
    "status",
    "progress_percentage",
    "created_at",
    "updated_at",
}


class CRUDObjective(CRUDBase[Objective, ObjectiveCreate, ObjectiveUpdate]):
    """Almacén de objetivos y de sus vínculos ponderados con KPIs."""

    # ---------- Estructura ----------
    def get_children(self, db: Session, parent_id: int) -> List[Objective]:
        """Hijos directos, consultados por el índice de parent_id."""
        return db.query(Objective).filter(Objective.parent_id == parent_id).all()

    def count_children(self, db: Session, parent_id: int) -> int:
        return (
            db.query(func.count(Objective.id))
            .filter(Objective.parent_id == parent_id)
            .scalar()
            or 0
        )

    def get_roots(self, db: Session, year: Optional[int] = None) -> List[Objective]:
        query = db.query(Objective).filter(Objective.parent_id.is_(None))
        if year is not None:
            query = query.filter(Objective.year == year)
        return query.order_by(Objective.id).all()

    # ---------- Consultas ----------
    def get_multi_with_filters(
        self,
        db: Session,
        *,
        filter_obj: ObjectiveFilter,
        skip: int = 0,
        limit: int = 100,
        order_by: str = "created_at",
        order_dir: str = "desc",
    ) -> Tuple[List[Objective], int]:
        """Aplica filtros, ordenamiento y paginación."""
        query = db.query(Objective)

        if filter_obj.owner_id is not None:
            query = query.filter(Objective.owner_id == filter_obj.owner_id)

        if filter_obj.level:
            query = query.filter(Objective.level == filter_obj.level)

        if filter_obj.year is not None:
            query = query.filter(Objective.year == filter_obj.year)

        if filter_obj.quarter:
            query = query.filter(Objective.quarter == filter_obj.quarter)

        if filter_obj.status:
            query = query.filter(Objective.status == filter_obj.status)

        if filter_obj.department:
            query = query.filter(Objective.department == filter_obj.department)

        if filter_obj.is_featured is not None:
            query = query.filter(Objective.is_featured == filter_obj.is_featured)

        if filter_obj.search:
            term = f"%{filter_obj.search}%"
            query = query.filter(
                or_(
                    Objective.title.ilike(term),
                    Objective.description.ilike(term),
                )
            )

        total = query.count()

        if order_by not in ORDERABLE_COLUMNS:
            order_by = "created_at"
        order_column = getattr(Objective, order_by)
        if order_dir == "asc":
            query = query.order_by(asc(order_column), asc(Objective.id))
        else:
            query = query.order_by(desc(order_column), desc(Objective.id))

        objectives = query.offset(skip).limit(limit).all()

        return objectives, total

    # ---------- Escritura ----------
    def create_with_owner(
        self,
        db: Session,
        *,
        obj_in: ObjectiveCreate,
        user_id: int,
    ) -> Objective:
        """Crea un objetivo registrando al creador; sin dueño explícito, el creador lo es."""
        obj_data = obj_in.model_dump()
        if obj_data.get("owner_id") is None:
            obj_data["owner_id"] = user_id
        return self.create(db, obj_in=obj_data, created_by=user_id, updated_by=user_id)

    def update_with_owner(
        self,
        db: Session,
        *,
        db_obj: Objective,
        update_data: Dict[str, Any],
        user_id: int,
    ) -> Objective:
        """Actualiza el objetivo y registra al actualizador."""
        update_data = dict(update_data)
        update_data["updated_by"] = user_id
        return self.update(db, db_obj=db_obj, obj_in=update_data)

    def set_parent(self, db: Session, *, db_obj: Objective, parent_id: Optional[int]) -> Objective:
        db_obj.parent_id = parent_id
        db_obj.updated_at = datetime.now(timezone.utc)
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def set_progress(self, db: Session, *, db_obj: Objective, progress: float) -> Objective:
        db_obj.progress_percentage = progress
        db_obj.updated_at = datetime.now(timezone.utc)
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    # ---------- Vínculos con KPIs ----------
    def get_links(self, db: Session, objective_id: int) -> List[ObjectiveKPILink]:
        return (
            db.query(ObjectiveKPILink)
            .filter(ObjectiveKPILink.objective_id == objective_id)
            .order_by(ObjectiveKPILink.id)
            .all()
        )

    def count_links(self, db: Session, objective_id: int) -> int:
        return (
            db.query(func.count(ObjectiveKPILink.id))
            .filter(ObjectiveKPILink.objective_id == objective_id)
            .scalar()
            or 0
        )

    def get_link(self, db: Session, *, objective_id: int, kpi_id: int) -> Optional[ObjectiveKPILink]:
        return (
            db.query(ObjectiveKPILink)
            .filter(
                ObjectiveKPILink.objective_id == objective_id,
                ObjectiveKPILink.kpi_id == kpi_id,
            )
            .first()
        )

    def get_links_for_kpi(self, db: Session, kpi_id: int) -> List[ObjectiveKPILink]:
        return (
            db.query(ObjectiveKPILink)
            .filter(ObjectiveKPILink.kpi_id == kpi_id)
            .order_by(ObjectiveKPILink.id)
            .all()
        )

    def upsert_link(
        self,
        db: Session,
        *,
        objective_id: int,
        kpi_id: int,
        weight: float = 1.0,
    ) -> ObjectiveKPILink:
        """Vincula un KPI; si el par ya existe solo actualiza el peso."""
        link = self.get_link(db, objective_id=objective_id, kpi_id=kpi_id)
        if link:
            link.weight = weight
        else:
            link = ObjectiveKPILink(objective_id=objective_id, kpi_id=kpi_id, weight=weight)
            db.add(link)
        db.commit()
        db.refresh(link)
        return link

    def remove_link(self, db: Session, *, objective_id: int, kpi_id: int) -> bool:
        link = self.get_link(db, objective_id=objective_id, kpi_id=kpi_id)
        if not link:
            return False
        db.delete(link)
        db.commit()
        return True

    # ---------- Estadísticas ----------
    def get_statistics(
        self,
        db: Session,
        *,
        owner_id: Optional[int] = None,
        year: Optional[int] = None,
        department: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Conteos por nivel y estado, más el progreso medio del conjunto filtrado."""
        query = db.query(Objective)
        if owner_id is not None:
            query = query.filter(Objective.owner_id == owner_id)
        if year is not None:
            query = query.filter(Objective.year == year)
        if department:
            query = query.filter(Objective.department == department)

        by_level = (
            query.with_entities(Objective.level, func.count(Objective.id))
            .group_by(Objective.level)
            .all()
        )
        by_status = (
            query.with_entities(Objective.status, func.count(Objective.id))
            .group_by(Objective.status)
            .all()
        )
        avg_progress = query.with_entities(func.avg(Objective.progress_percentage)).scalar()

        return {
            "total": query.count(),
            "by_level": {level: count for level, count in by_level},
            "by_status": {status: count for status, count in by_status},
            "average_progress": round(float(avg_progress), 2) if avg_progress is not None else 0.0,
        }


objective_crud = CRUDObjective(Objective)
