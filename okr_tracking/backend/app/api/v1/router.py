from fastapi import APIRouter

from app.api.v1.endpoints import auth, kpis, objectives

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(objectives.router, prefix="/objectives", tags=["objectives"])
api_router.include_router(kpis.router, prefix="/kpis", tags=["kpis"])
