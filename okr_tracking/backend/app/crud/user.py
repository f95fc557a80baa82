from typing import Optional

from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.exceptions import CredentialsException, UserInactiveException
from app.core.security import TokenUtils
from app.crud.base import CRUDBase
from app.models.user import User, UserRole


class CRUDUser(CRUDBase[User, BaseModel, BaseModel]):
    """CRUD para el directorio de usuarios."""

    def get_by_email(self, db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email).first()

    def get_by_username(self, db: Session, username: str) -> Optional[User]:
        return db.query(User).filter(User.username == username).first()

    def create_user(
        self,
        db: Session,
        *,
        email: str,
        username: str,
        password: str,
        role: str = UserRole.EMPLOYEE.value,
        department: Optional[str] = None,
        full_name: Optional[str] = None,
    ) -> User:
        if self.get_by_email(db, email=email):
            raise ValueError("Ya existe un usuario con este email")
        if self.get_by_username(db, username=username):
            raise ValueError("Ya existe un usuario con este username")

        return self.create(
            db,
            obj_in={
                "email": email,
                "username": username,
                "full_name": full_name,
                "hashed_password": TokenUtils.get_password_hash(password),
                "role": UserRole(role).value,
                "department": department,
                "is_active": True,
            },
        )

    def authenticate(self, db: Session, *, email: str, password: str) -> Optional[User]:
        """Valida credenciales; acepta email o username como identificador."""
        user = self.get_by_email(db, email=email) or self.get_by_username(db, username=email)
        if not user:
            return None
        if not user.verify_password(password):
            raise CredentialsException()
        if not user.is_active:
            raise UserInactiveException()
        return user


user = CRUDUser(User)
