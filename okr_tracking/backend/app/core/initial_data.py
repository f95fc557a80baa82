"""
Semilla mínima: garantiza un usuario administrador inicial.
"""

import logging

from app.core.config import settings
from app.crud.user import user as user_crud
from app.database import SessionLocal
from app.models.user import UserRole

logger = logging.getLogger(__name__)


def seed_admin_user() -> None:
    """Crea el administrador configurado si aún no existe ninguno."""
    if not settings.FIRST_ADMIN_PASSWORD:
        logger.info("FIRST_ADMIN_PASSWORD vacío; se omite la semilla de administrador")
        return

    db = SessionLocal()
    try:
        if user_crud.get_by_email(db, email=settings.FIRST_ADMIN_EMAIL):
            return

        user_crud.create_user(
            db,
            email=settings.FIRST_ADMIN_EMAIL,
            username=settings.FIRST_ADMIN_EMAIL.split("@")[0],
            password=settings.FIRST_ADMIN_PASSWORD,
            role=UserRole.ADMIN.value,
            full_name="Administrador",
        )
        logger.info("Administrador inicial creado: %s", settings.FIRST_ADMIN_EMAIL)
    finally:
        db.close()
