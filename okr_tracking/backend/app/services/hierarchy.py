import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import (
    CircularReferenceError,
    NotFoundError,
    ParentNotFoundError,
    SelfReferenceError,
    StructuralIntegrityError,
)
from app.crud.objective import objective_crud
from app.models.objective import Objective

logger = logging.getLogger(__name__)


@dataclass
class TreeNode:
    """Objetivo con sus hijos materializados."""
    objective: Objective
    depth: int = 0
    children: List["TreeNode"] = field(default_factory=list)

    def iter_preorder(self):
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))


class HierarchyNavigator:
    """Recorridos del árbol de objetivos y validación de movimientos.

    Los hijos se obtienen siempre consultando el índice ``parent_id``.
    Todos los recorridos son iterativos y están acotados por
    ``settings.MAX_HIERARCHY_DEPTH``.
    """

    def __init__(self, db: Session, max_depth: Optional[int] = None):
        self.db = db
        self.max_depth = max_depth or settings.MAX_HIERARCHY_DEPTH

    def _get_or_404(self, objective_id: int) -> Objective:
        objective = objective_crud.get(self.db, id=objective_id)
        if not objective:
            raise NotFoundError()
        return objective

    def get_children(self, objective_id: int) -> List[Objective]:
        return objective_crud.get_children(self.db, objective_id)

    def get_ancestors(self, objective_id: int) -> List[Objective]:
        """Cadena de padres ordenada de la raíz al padre inmediato.

        Un puntero a un padre inexistente corta la cadena en ese punto.
        """
        objective = objective_crud.get(self.db, id=objective_id)
        if not objective:
            return []

        ancestors: List[Objective] = []
        visited = {objective.id}
        parent_id = objective.parent_id

        while parent_id is not None:
            if parent_id in visited:
                logger.warning("Ciclo detectado en la cadena de padres del objetivo %s", objective_id)
                raise StructuralIntegrityError(
                    f"Ciclo detectado en la cadena de padres del objetivo {objective_id}"
                )
            if len(ancestors) >= self.max_depth:
                logger.warning("Profundidad máxima excedida al recorrer ancestros de %s", objective_id)
                raise StructuralIntegrityError(
                    f"La jerarquía del objetivo {objective_id} excede la profundidad máxima ({self.max_depth})"
                )

            parent = objective_crud.get(self.db, id=parent_id)
            if parent is None:
                logger.warning(
                    "Objetivo %s apunta a un padre inexistente (%s)", objective_id, parent_id
                )
                break

            visited.add(parent.id)
            ancestors.append(parent)
            parent_id = parent.parent_id

        ancestors.reverse()
        return ancestors

    def _build_subtree(self, root: Objective) -> TreeNode:
        root_node = TreeNode(objective=root, depth=0)
        stack = [root_node]
        seen = {root.id}

        while stack:
            node = stack.pop()
            if node.depth >= self.max_depth:
                raise StructuralIntegrityError(
                    f"El árbol del objetivo {root.id} excede la profundidad máxima ({self.max_depth})"
                )
            for child in self.get_children(node.objective.id):
                if child.id in seen:
                    raise StructuralIntegrityError(
                        f"El objetivo {child.id} aparece más de una vez en el árbol de {root.id}"
                    )
                seen.add(child.id)
                child_node = TreeNode(objective=child, depth=node.depth + 1)
                node.children.append(child_node)
                stack.append(child_node)

        return root_node

    def get_tree(self, root_id: Optional[int] = None, year: Optional[int] = None) -> List[TreeNode]:
        """Con ``root_id`` devuelve ese subárbol; sin él, todos los árboles raíz."""
        if root_id is not None:
            return [self._build_subtree(self._get_or_404(root_id))]

        return [self._build_subtree(root) for root in objective_crud.get_roots(self.db, year=year)]

    def validate_move(self, objective_id: int, new_parent_id: Optional[int]) -> Optional[Objective]:
        """Valida el movimiento y devuelve el nuevo padre (``None`` para raíz)."""
        if new_parent_id is None:
            return None

        if new_parent_id == objective_id:
            logger.warning("Movimiento rechazado: %s bajo sí mismo", objective_id)
            raise SelfReferenceError()

        new_parent = objective_crud.get(self.db, id=new_parent_id)
        if not new_parent:
            raise ParentNotFoundError()

        ancestor_ids = {ancestor.id for ancestor in self.get_ancestors(new_parent_id)}
        if objective_id in ancestor_ids:
            logger.warning(
                "Movimiento rechazado: %s es ancestro de %s", objective_id, new_parent_id
            )
            raise CircularReferenceError()

        return new_parent

    def move(self, objective_id: int, new_parent_id: Optional[int]) -> Objective:
        """Reasigna el padre. No recalcula progreso en el padre viejo ni en el nuevo."""
        objective = self._get_or_404(objective_id)
        self.validate_move(objective_id, new_parent_id)
        objective = objective_crud.set_parent(self.db, db_obj=objective, parent_id=new_parent_id)
        logger.info("Objetivo %s movido bajo %s", objective_id, new_parent_id)
        return objective
