from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Path, Query, status

from app.api.deps import get_current_user, require_permission
from app.core.config import settings
from app.core.permissions import Permission
from app.models.objective import Objective, ObjectiveLevel, ObjectiveStatus
from app.schemas.kpi import LinkedKPI
from app.schemas.objective import (
    ObjectiveCreate,
    ObjectiveDetail,
    ObjectiveFilter,
    ObjectiveGanttItem,
    ObjectiveKPILinkCreate,
    ObjectiveKPILinkResponse,
    ObjectiveResponse,
    ObjectiveStats,
    ObjectiveTreeNode,
    ObjectiveUpdate,
    ProgressCalculation,
    Quarter,
)
from app.schemas.response import ErrorResponse, PaginatedResponse, SuccessResponse
from app.services.objective_service import ObjectiveService, get_objective_service
from app.templates.api import ApiResponseTemplate
from app.templates.objectives import ObjectiveTemplate

router = APIRouter()

NOT_FOUND = {status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}}


def _serialize(objective: Objective) -> Dict[str, Any]:
    return ObjectiveResponse.model_validate(objective).model_dump()


@router.post(
    "/",
    response_model=SuccessResponse[ObjectiveResponse],
    status_code=status.HTTP_201_CREATED,
    responses={status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse}, **NOT_FOUND},
)
async def create_objective(
    obj_in: ObjectiveCreate,
    current_user: dict = Depends(require_permission(Permission.OBJECTIVES_CREATE)),
    service: ObjectiveService = Depends(get_objective_service),
):
    """
    Crea un objetivo
    ✅ REQUIERE PERMISO: objectives:create (nivel limitado por rol)
    """
    objective = await service.create_objective(obj_in, current_user)
    return ApiResponseTemplate.success(
        data=_serialize(objective),
        message="Objetivo creado exitosamente",
        status_code=status.HTTP_201_CREATED,
    )


@router.get("/", response_model=PaginatedResponse[List[ObjectiveResponse]])
async def list_objectives(
    current_user: dict = Depends(require_permission(Permission.OBJECTIVES_VIEW)),
    service: ObjectiveService = Depends(get_objective_service),
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    owner_id: Optional[int] = Query(None),
    level: Optional[ObjectiveLevel] = Query(None),
    year: Optional[int] = Query(None),
    quarter: Optional[Quarter] = Query(None),
    status: Optional[ObjectiveStatus] = Query(None),
    department: Optional[str] = Query(None),
    is_featured: Optional[bool] = Query(None),
    search: Optional[str] = Query(None),
    order_by: str = Query("created_at"),
    order_dir: str = Query("desc"),
):
    """
    Lista objetivos con filtros y paginación.
    Empleados ven solo los propios; managers, por defecto, los de su departamento.
    """
    filter_obj = ObjectiveFilter(
        owner_id=owner_id,
        level=level,
        year=year,
        quarter=quarter,
        status=status,
        department=department,
        is_featured=is_featured,
        search=search,
    )
    objectives, total = await service.list_objectives(
        filter_obj,
        current_user,
        skip=skip,
        limit=limit,
        order_by=order_by,
        order_dir=order_dir,
    )
    return ApiResponseTemplate.paginated(
        data=[_serialize(objective) for objective in objectives],
        total=total,
        skip=skip,
        limit=limit,
        metadata={
            "filters": filter_obj.model_dump(exclude_none=True),
            "order": {"by": order_by, "direction": order_dir},
        },
    )


@router.get("/tree/view", response_model=SuccessResponse[List[ObjectiveTreeNode]], responses=NOT_FOUND)
async def get_objective_tree(
    root_id: Optional[int] = Query(None, description="Raíz del subárbol; sin ella, todos los árboles"),
    year: Optional[int] = Query(None, description="Filtra el conjunto de raíces por año"),
    current_user: dict = Depends(get_current_user),
    service: ObjectiveService = Depends(get_objective_service),
):
    tree = await service.get_tree(root_id=root_id, year=year)
    return ApiResponseTemplate.success(data=tree, message="Árbol de objetivos")


@router.get("/gantt/view", response_model=SuccessResponse[List[ObjectiveGanttItem]], responses=NOT_FOUND)
async def get_objective_gantt(
    root_id: Optional[int] = Query(None),
    year: Optional[int] = Query(None),
    current_user: dict = Depends(get_current_user),
    service: ObjectiveService = Depends(get_objective_service),
):
    items = await service.get_gantt(root_id=root_id, year=year)
    return ApiResponseTemplate.success(
        data=items,
        message="Datos de Gantt",
        metadata={"count": len(items)},
    )


@router.get("/stats/summary", response_model=SuccessResponse[ObjectiveStats])
async def get_objectives_stats(
    owner_id: Optional[int] = Query(None),
    year: Optional[int] = Query(None),
    department: Optional[str] = Query(None),
    current_user: dict = Depends(require_permission(Permission.OBJECTIVES_VIEW_STATS)),
    service: ObjectiveService = Depends(get_objective_service),
):
    """
    Estadísticas por nivel y estado con progreso promedio
    """
    stats = await service.get_stats(current_user, owner_id=owner_id, year=year, department=department)
    return ApiResponseTemplate.success(data=stats, message="Estadísticas de objetivos")


@router.get("/{objective_id}", response_model=SuccessResponse[ObjectiveDetail], responses=NOT_FOUND)
async def get_objective(
    objective_id: int = Path(..., description="ID del objetivo"),
    current_user: dict = Depends(require_permission(Permission.OBJECTIVES_VIEW)),
    service: ObjectiveService = Depends(get_objective_service),
):
    detail = await service.get_objective_detail(objective_id, current_user)
    return ApiResponseTemplate.success(
        data=detail,
        message="Objetivo obtenido",
        metadata=ObjectiveTemplate.create_objective_response(detail, current_user),
    )


@router.put("/{objective_id}", response_model=SuccessResponse[ObjectiveResponse], responses=NOT_FOUND)
async def update_objective(
    obj_in: ObjectiveUpdate,
    objective_id: int = Path(..., description="ID del objetivo"),
    current_user: dict = Depends(get_current_user),
    service: ObjectiveService = Depends(get_objective_service),
):
    """
    Actualiza un objetivo.
    Un cambio de padre pasa por las mismas validaciones que mover.
    """
    objective = await service.update_objective(objective_id, obj_in, current_user)
    return ApiResponseTemplate.success(
        data=_serialize(objective),
        message="Objetivo actualizado exitosamente",
    )


@router.delete("/{objective_id}", response_model=SuccessResponse[Dict[str, int]], responses=NOT_FOUND)
async def delete_objective(
    objective_id: int = Path(..., description="ID del objetivo"),
    current_user: dict = Depends(get_current_user),
    service: ObjectiveService = Depends(get_objective_service),
):
    """
    Elimina un objetivo junto con sus descendientes y vínculos
    """
    await service.delete_objective(objective_id, current_user)
    return ApiResponseTemplate.success(
        data={"id": objective_id},
        message="Objetivo eliminado exitosamente",
    )


@router.get("/{objective_id}/children", response_model=SuccessResponse[List[ObjectiveResponse]], responses=NOT_FOUND)
async def get_objective_children(
    objective_id: int = Path(..., description="ID del objetivo"),
    current_user: dict = Depends(get_current_user),
    service: ObjectiveService = Depends(get_objective_service),
):
    children = await service.get_children(objective_id)
    return ApiResponseTemplate.success(data=[_serialize(child) for child in children])


@router.get("/{objective_id}/ancestors", response_model=SuccessResponse[List[ObjectiveResponse]], responses=NOT_FOUND)
async def get_objective_ancestors(
    objective_id: int = Path(..., description="ID del objetivo"),
    current_user: dict = Depends(get_current_user),
    service: ObjectiveService = Depends(get_objective_service),
):
    """
    Cadena de ancestros ordenada desde la raíz hasta el padre inmediato
    """
    ancestors = await service.get_ancestors(objective_id)
    return ApiResponseTemplate.success(data=[_serialize(ancestor) for ancestor in ancestors])


@router.post(
    "/{objective_id}/move",
    response_model=SuccessResponse[ObjectiveResponse],
    responses={status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse}, **NOT_FOUND},
)
async def move_objective(
    objective_id: int = Path(..., description="ID del objetivo"),
    new_parent_id: Optional[int] = Query(None, description="Nuevo padre; vacío lo convierte en raíz"),
    current_user: dict = Depends(require_permission(Permission.OBJECTIVES_MOVE)),
    service: ObjectiveService = Depends(get_objective_service),
):
    """
    Mueve un objetivo bajo otro padre
    ✅ REQUIERE PERMISO: objectives:move
    No recalcula el progreso de los padres involucrados.
    """
    objective = await service.move_objective(objective_id, new_parent_id, current_user)
    return ApiResponseTemplate.success(
        data=_serialize(objective),
        message="Objetivo movido exitosamente",
    )


@router.post(
    "/{objective_id}/kpis",
    response_model=SuccessResponse[ObjectiveKPILinkResponse],
    status_code=status.HTTP_201_CREATED,
    responses=NOT_FOUND,
)
async def link_kpi_to_objective(
    link_in: ObjectiveKPILinkCreate,
    objective_id: int = Path(..., description="ID del objetivo"),
    current_user: dict = Depends(get_current_user),
    service: ObjectiveService = Depends(get_objective_service),
):
    """
    Vincula un KPI al objetivo; si ya estaba vinculado actualiza el peso
    """
    link = await service.link_kpi(objective_id, link_in, current_user)
    return ApiResponseTemplate.success(
        data=ObjectiveKPILinkResponse.model_validate(link).model_dump(),
        message="KPI vinculado exitosamente",
        status_code=status.HTTP_201_CREATED,
    )


@router.get("/{objective_id}/kpis", response_model=SuccessResponse[List[LinkedKPI]], responses=NOT_FOUND)
async def get_objective_kpis(
    objective_id: int = Path(..., description="ID del objetivo"),
    current_user: dict = Depends(get_current_user),
    service: ObjectiveService = Depends(get_objective_service),
):
    kpis = await service.get_linked_kpis(objective_id)
    return ApiResponseTemplate.success(data=kpis)


@router.delete(
    "/{objective_id}/kpis/{kpi_id}",
    response_model=SuccessResponse[Dict[str, int]],
    responses=NOT_FOUND,
)
async def unlink_kpi_from_objective(
    objective_id: int = Path(..., description="ID del objetivo"),
    kpi_id: int = Path(..., description="ID del KPI"),
    current_user: dict = Depends(get_current_user),
    service: ObjectiveService = Depends(get_objective_service),
):
    await service.unlink_kpi(objective_id, kpi_id, current_user)
    return ApiResponseTemplate.success(
        data={"objective_id": objective_id, "kpi_id": kpi_id},
        message="KPI desvinculado exitosamente",
    )


@router.get("/{objective_id}/progress", response_model=SuccessResponse[ProgressCalculation], responses=NOT_FOUND)
async def get_objective_progress(
    objective_id: int = Path(..., description="ID del objetivo"),
    current_user: dict = Depends(get_current_user),
    service: ObjectiveService = Depends(get_objective_service),
):
    """
    Progreso calculado (sin persistir) y método usado: children, kpis o manual
    """
    report = await service.get_progress_report(objective_id)
    return ApiResponseTemplate.success(data=report)


@router.post("/{objective_id}/recalculate", response_model=SuccessResponse[ObjectiveResponse], responses=NOT_FOUND)
async def recalculate_objective_progress(
    objective_id: int = Path(..., description="ID del objetivo"),
    current_user: dict = Depends(require_permission(Permission.OBJECTIVES_RECALCULATE)),
    service: ObjectiveService = Depends(get_objective_service),
):
    """
    Recalcula el progreso y lo propaga hasta la raíz
    """
    objective = await service.recalculate_progress(objective_id)
    return ApiResponseTemplate.success(
        data=_serialize(objective),
        message="Progreso recalculado",
    )
