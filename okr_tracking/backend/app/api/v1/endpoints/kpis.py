from typing import List

from fastapi import APIRouter, Depends, Path, status

from app.api.deps import get_current_user, require_permission
from app.core.permissions import Permission
from app.schemas.kpi import KPIObjectiveLink
from app.schemas.objective import ObjectiveResponse
from app.schemas.response import ErrorResponse, SuccessResponse
from app.services.objective_service import ObjectiveService, get_objective_service
from app.templates.api import ApiResponseTemplate

router = APIRouter()


@router.get(
    "/{kpi_id}/objectives",
    response_model=SuccessResponse[List[KPIObjectiveLink]],
    responses={status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}},
)
async def get_kpi_objectives(
    kpi_id: int = Path(..., description="ID del KPI"),
    current_user: dict = Depends(get_current_user),
    service: ObjectiveService = Depends(get_objective_service),
):
    """
    Objetivos a los que contribuye el KPI, con el peso de cada vínculo
    """
    links = await service.get_objectives_for_kpi(kpi_id)
    return ApiResponseTemplate.success(data=links, metadata={"count": len(links)})


@router.post(
    "/{kpi_id}/recalculate-objectives",
    response_model=SuccessResponse[List[ObjectiveResponse]],
    responses={status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}},
)
async def recalculate_kpi_objectives(
    kpi_id: int = Path(..., description="ID del KPI"),
    current_user: dict = Depends(require_permission(Permission.OBJECTIVES_RECALCULATE)),
    service: ObjectiveService = Depends(get_objective_service),
):
    """
    Recalcula (con cascada hasta la raíz) cada objetivo vinculado al KPI.
    Se invoca después de modificar el progreso del KPI.
    """
    objectives = await service.recalculate_for_kpi(kpi_id)
    return ApiResponseTemplate.success(
        data=[ObjectiveResponse.model_validate(objective).model_dump() for objective in objectives],
        message="Objetivos recalculados",
        metadata={"count": len(objectives)},
    )
