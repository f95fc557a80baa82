import logging
from typing import Any, Dict, List, Optional, Tuple

from fastapi import Depends
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.core.exceptions import (
    HierarchyViolationError,
    InsufficientPermissionsException,
    NotFoundError,
    ParentNotFoundError,
)
from app.core.permissions import Permission, PermissionManager, ResourceScope
from app.crud.kpi import kpi_crud
from app.crud.objective import objective_crud
from app.models.objective import Objective, ObjectiveKPILink, level_rank
from app.models.user import UserRole
from app.schemas.objective import (
    ObjectiveCreate,
    ObjectiveFilter,
    ObjectiveKPILinkCreate,
    ObjectiveUpdate,
)
from app.services.hierarchy import HierarchyNavigator, TreeNode
from app.services.progress import ProgressCalculator

logger = logging.getLogger(__name__)

# Campos que un patch no puede dejar en nulo.
NON_NULLABLE_FIELDS = {"title", "level", "year", "status", "progress_percentage", "is_featured", "owner_id"}


class ObjectiveService:
    """Orquesta CRUD, autorización por rol, navegador y calculadora."""

    def __init__(self, db: Session):
        self.db = db
        self.navigator = HierarchyNavigator(db)
        self.calculator = ProgressCalculator(db)

    # ---------- Helpers ----------
    def _get_or_404(self, objective_id: int) -> Objective:
        objective = objective_crud.get(self.db, id=objective_id)
        if not objective:
            raise NotFoundError()
        return objective

    @staticmethod
    def _role(current_user: Dict[str, Any]) -> str:
        return current_user.get("role") or UserRole.EMPLOYEE.value

    @staticmethod
    def _is_owner(objective: Objective, current_user: Dict[str, Any]) -> bool:
        return objective.owner_id == current_user["id"]

    def _check_parent_level(self, level: str, parent_id: Optional[int]) -> None:
        if parent_id is None:
            return
        parent = objective_crud.get(self.db, id=parent_id)
        if not parent:
            raise ParentNotFoundError()
        if level_rank(level) <= level_rank(parent.level):
            raise HierarchyViolationError(level, parent.level)

    def _check_children_levels(self, objective: Objective, level: str) -> None:
        for child in objective_crud.get_children(self.db, objective.id):
            if level_rank(child.level) <= level_rank(level):
                raise HierarchyViolationError(child.level, level)

    def _ensure_can_view(self, objective: Objective, current_user: Dict[str, Any]) -> None:
        role = self._role(current_user)
        if (
            not PermissionManager.has_permission(role, Permission.OBJECTIVES_VIEW_ALL)
            and not self._is_owner(objective, current_user)
        ):
            raise InsufficientPermissionsException("Solo puedes ver tus propios objetivos")

    def _ensure_can_edit(self, objective: Objective, current_user: Dict[str, Any]) -> None:
        role = self._role(current_user)
        if PermissionManager.has_permission(role, Permission.OBJECTIVES_EDIT_ANY):
            return
        if self._is_owner(objective, current_user):
            return
        if (
            PermissionManager.has_permission(role, Permission.OBJECTIVES_EDIT_DEPARTMENT)
            and objective.department is not None
            and objective.department == current_user.get("department")
        ):
            return
        if role == UserRole.MANAGER.value:
            raise InsufficientPermissionsException(
                "Solo puedes editar objetivos de tu departamento o propios"
            )
        raise InsufficientPermissionsException("Solo puedes editar tus propios objetivos")

    def _ensure_can_delete(self, objective: Objective, current_user: Dict[str, Any]) -> None:
        role = self._role(current_user)
        if PermissionManager.has_permission(role, Permission.OBJECTIVES_DELETE_ANY):
            return
        if self._is_owner(objective, current_user):
            return
        if (
            PermissionManager.has_permission(role, Permission.OBJECTIVES_DELETE_CREATED)
            and objective.created_by == current_user["id"]
        ):
            return
        if role == UserRole.MANAGER.value:
            raise InsufficientPermissionsException(
                "Solo puedes eliminar objetivos creados por ti o propios"
            )
        raise InsufficientPermissionsException("Solo puedes eliminar tus propios objetivos")

    def _ensure_can_link(self, objective: Objective, current_user: Dict[str, Any]) -> None:
        role = self._role(current_user)
        if PermissionManager.has_permission(role, Permission.OBJECTIVES_LINK_ANY_KPI):
            return
        if not self._is_owner(objective, current_user):
            raise InsufficientPermissionsException(
                "Solo puedes vincular KPIs a tus propios objetivos"
            )

    # ---------- CRUD ----------
    async def create_objective(self, obj_in: ObjectiveCreate, current_user: Dict[str, Any]) -> Objective:
        role = self._role(current_user)
        PermissionManager.check_permission(role, Permission.OBJECTIVES_CREATE)
        PermissionManager.check_level_ceiling(role, obj_in.level)

        if role == UserRole.EMPLOYEE.value and obj_in.owner_id not in (None, current_user["id"]):
            raise InsufficientPermissionsException("Solo puedes crear objetivos propios")

        self._check_parent_level(obj_in.level, obj_in.parent_id)

        if obj_in.department is None and current_user.get("department"):
            obj_in = obj_in.model_copy(update={"department": current_user["department"]})

        objective = objective_crud.create_with_owner(self.db, obj_in=obj_in, user_id=current_user["id"])
        logger.info(
            "Objetivo %s (%s) creado por usuario %s", objective.id, objective.level, current_user["id"]
        )
        return objective

    async def get_objective(self, objective_id: int, current_user: Dict[str, Any]) -> Objective:
        objective = self._get_or_404(objective_id)
        self._ensure_can_view(objective, current_user)
        return objective

    async def get_objective_detail(self, objective_id: int, current_user: Dict[str, Any]) -> Dict[str, Any]:
        objective = await self.get_objective(objective_id, current_user)
        return {
            **objective.to_dict(),
            "owner_name": objective.owner.display_name if objective.owner else None,
            "parent_title": objective.parent.title if objective.parent else None,
            "children_count": objective_crud.count_children(self.db, objective.id),
            "kpi_count": objective_crud.count_links(self.db, objective.id),
        }

    async def list_objectives(
        self,
        filter_obj: ObjectiveFilter,
        current_user: Dict[str, Any],
        skip: int = 0,
        limit: int = 100,
        order_by: str = "created_at",
        order_dir: str = "desc",
    ) -> Tuple[List[Objective], int]:
        scope = PermissionManager.get_scope(self._role(current_user))
        if scope == ResourceScope.OWN:
            filter_obj = filter_obj.model_copy(update={"owner_id": current_user["id"]})
        elif scope == ResourceScope.DEPARTMENT and filter_obj.owner_id is None and not filter_obj.department:
            filter_obj = filter_obj.model_copy(update={"department": current_user.get("department")})

        return objective_crud.get_multi_with_filters(
            self.db,
            filter_obj=filter_obj,
            skip=skip,
            limit=limit,
            order_by=order_by,
            order_dir=order_dir,
        )

    async def update_objective(
        self,
        objective_id: int,
        obj_in: ObjectiveUpdate,
        current_user: Dict[str, Any],
    ) -> Objective:
        objective = self._get_or_404(objective_id)
        self._ensure_can_edit(objective, current_user)

        role = self._role(current_user)
        update_data = {
            field: value
            for field, value in obj_in.model_dump(exclude_unset=True).items()
            if value is not None or field not in NON_NULLABLE_FIELDS
        }

        if (
            role == UserRole.EMPLOYEE.value
            and update_data.get("owner_id") not in (None, current_user["id"])
        ):
            raise InsufficientPermissionsException("No puedes reasignar el dueño del objetivo")

        new_level = update_data.get("level") or objective.level
        parent_changed = "parent_id" in update_data and update_data["parent_id"] != objective.parent_id
        level_changed = new_level != objective.level

        if level_changed:
            PermissionManager.check_level_ceiling(role, new_level)

        if parent_changed:
            self.navigator.validate_move(objective.id, update_data["parent_id"])

        if parent_changed or level_changed:
            parent_id = update_data["parent_id"] if parent_changed else objective.parent_id
            self._check_parent_level(new_level, parent_id)

        if level_changed:
            self._check_children_levels(objective, new_level)

        return objective_crud.update_with_owner(
            self.db, db_obj=objective, update_data=update_data, user_id=current_user["id"]
        )

    async def delete_objective(self, objective_id: int, current_user: Dict[str, Any]) -> None:
        objective = self._get_or_404(objective_id)
        self._ensure_can_delete(objective, current_user)
        objective_crud.remove(self.db, id=objective_id)
        logger.info("Objetivo %s eliminado por usuario %s", objective_id, current_user["id"])

    # ---------- Jerarquía ----------
    async def get_children(self, objective_id: int) -> List[Objective]:
        self._get_or_404(objective_id)
        return self.navigator.get_children(objective_id)

    async def get_ancestors(self, objective_id: int) -> List[Objective]:
        self._get_or_404(objective_id)
        return self.navigator.get_ancestors(objective_id)

    @staticmethod
    def _tree_to_dict(root: TreeNode) -> Dict[str, Any]:
        def as_dict(node: TreeNode) -> Dict[str, Any]:
            objective = node.objective
            return {
                "id": objective.id,
                "title": objective.title,
                "level": objective.level,
                "progress_percentage": objective.progress_percentage,
                "status": objective.status,
                "owner_id": objective.owner_id,
                "owner_name": objective.owner.display_name if objective.owner else None,
                "children": [],
            }

        root_dict = as_dict(root)
        stack = [(root, root_dict)]
        while stack:
            node, node_dict = stack.pop()
            for child in node.children:
                child_dict = as_dict(child)
                node_dict["children"].append(child_dict)
                stack.append((child, child_dict))
        return root_dict

    async def get_tree(self, root_id: Optional[int] = None, year: Optional[int] = None) -> List[Dict[str, Any]]:
        return [self._tree_to_dict(tree) for tree in self.navigator.get_tree(root_id=root_id, year=year)]

    async def get_gantt(self, root_id: Optional[int] = None, year: Optional[int] = None) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        for tree in self.navigator.get_tree(root_id=root_id, year=year):
            for node in tree.iter_preorder():
                objective = node.objective
                items.append(
                    {
                        "id": objective.id,
                        "title": objective.title,
                        "level": objective.level,
                        "start_date": objective.start_date,
                        "end_date": objective.end_date,
                        "progress_percentage": objective.progress_percentage,
                        "status": objective.status,
                        "parent_id": objective.parent_id,
                        "dependencies": [child.objective.id for child in node.children],
                    }
                )
        return items

    async def move_objective(
        self,
        objective_id: int,
        new_parent_id: Optional[int],
        current_user: Dict[str, Any],
    ) -> Objective:
        PermissionManager.check_permission(self._role(current_user), Permission.OBJECTIVES_MOVE)
        return self.navigator.move(objective_id, new_parent_id)

    # ---------- KPIs ----------
    async def link_kpi(
        self,
        objective_id: int,
        link_in: ObjectiveKPILinkCreate,
        current_user: Dict[str, Any],
    ) -> ObjectiveKPILink:
        objective = self._get_or_404(objective_id)
        self._ensure_can_link(objective, current_user)
        if not kpi_crud.get(self.db, id=link_in.kpi_id):
            raise NotFoundError("KPI no encontrado")

        link = objective_crud.upsert_link(
            self.db, objective_id=objective_id, kpi_id=link_in.kpi_id, weight=link_in.weight
        )
        logger.info("KPI %s vinculado al objetivo %s (peso %.2f)", link_in.kpi_id, objective_id, link.weight)
        return link

    async def unlink_kpi(self, objective_id: int, kpi_id: int, current_user: Dict[str, Any]) -> None:
        objective = self._get_or_404(objective_id)
        self._ensure_can_link(objective, current_user)
        if not objective_crud.remove_link(self.db, objective_id=objective_id, kpi_id=kpi_id):
            raise NotFoundError("Vínculo no encontrado")
        logger.info("KPI %s desvinculado del objetivo %s", kpi_id, objective_id)

    async def get_linked_kpis(self, objective_id: int) -> List[Dict[str, Any]]:
        self._get_or_404(objective_id)
        linked = []
        for link in objective_crud.get_links(self.db, objective_id):
            kpi = link.kpi
            linked.append(
                {
                    "id": kpi.id,
                    "title": kpi.title,
                    "user_id": kpi.user_id,
                    "year": kpi.year,
                    "quarter": kpi.quarter,
                    "status": kpi.status,
                    "progress_percentage": kpi.progress_percentage,
                    "weight": link.weight,
                }
            )
        return linked

    async def get_objectives_for_kpi(self, kpi_id: int) -> List[Dict[str, Any]]:
        if not kpi_crud.get(self.db, id=kpi_id):
            raise NotFoundError("KPI no encontrado")
        return [
            {
                "objective_id": link.objective_id,
                "objective_title": link.objective.title,
                "level": link.objective.level,
                "weight": link.weight,
                "progress_percentage": link.objective.progress_percentage,
            }
            for link in objective_crud.get_links_for_kpi(self.db, kpi_id)
        ]

    # ---------- Progreso ----------
    async def calculate_progress(self, objective_id: int) -> float:
        progress = self.calculator.calculate_progress(objective_id)
        if progress is None:
            raise NotFoundError()
        return progress

    async def recalculate_progress(self, objective_id: int) -> Objective:
        objective = self.calculator.recalculate_progress(objective_id)
        if objective is None:
            raise NotFoundError()
        return objective

    async def recalculate_for_kpi(self, kpi_id: int) -> List[Objective]:
        if not kpi_crud.get(self.db, id=kpi_id):
            raise NotFoundError("KPI no encontrado")
        return self.calculator.recalculate_for_kpi(kpi_id)

    async def get_progress_report(self, objective_id: int) -> Dict[str, Any]:
        objective = self._get_or_404(objective_id)
        return {
            "objective_id": objective.id,
            "progress_percentage": self.calculator.calculate_progress(objective.id),
            "calculation_method": self.calculator.calculation_method(objective.id),
            "child_count": objective_crud.count_children(self.db, objective.id),
            "kpi_count": objective_crud.count_links(self.db, objective.id),
            "last_calculated": objective.updated_at,
        }

    async def get_stats(
        self,
        current_user: Dict[str, Any],
        owner_id: Optional[int] = None,
        year: Optional[int] = None,
        department: Optional[str] = None,
    ) -> Dict[str, Any]:
        role = self._role(current_user)
        PermissionManager.check_permission(role, Permission.OBJECTIVES_VIEW_STATS)
        if PermissionManager.get_scope(role) == ResourceScope.OWN:
            owner_id = current_user["id"]
        return objective_crud.get_statistics(
            self.db, owner_id=owner_id, year=year, department=department
        )


def get_objective_service(db: Session = Depends(get_db)) -> ObjectiveService:
    return ObjectiveService(db)
