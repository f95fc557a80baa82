import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app import models  # noqa: F401  registra todos los modelos en Base.metadata
from app.api.v1.router import api_router
from app.core.config import settings
from app.core.exceptions import ObjectiveDomainError
from app.core.initial_data import seed_admin_user
from app.database import engine, Base
from app.templates.api import ApiResponseTemplate

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Crear tablas
Base.metadata.create_all(bind=engine)
seed_admin_user()

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
)

# Configurar CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ObjectiveDomainError)
async def objective_domain_error_handler(request: Request, exc: ObjectiveDomainError):
    if exc.status_code >= 500:
        logger.error("%s en %s: %s", type(exc).__name__, request.url.path, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=ApiResponseTemplate.domain_error(exc),
    )


# Incluir rutas
app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/")
async def root():
    return {"message": f"{settings.PROJECT_NAME} API"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
