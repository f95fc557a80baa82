import enum

from sqlalchemy import Boolean, Column, String

from app.models.base import BaseModel


class UserRole(str, enum.Enum):
    """Roles de usuario"""
    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"


class User(BaseModel):
    """Directorio de usuarios: dueños, creadores y roles para autorización."""
    __tablename__ = "users"

    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(50), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=True)
    hashed_password = Column(String(255), nullable=False)

    role = Column(String(20), nullable=False, default=UserRole.EMPLOYEE.value, index=True)
    department = Column(String(100), nullable=True)
    position = Column(String(100), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    @property
    def display_name(self) -> str:
        return self.full_name or self.username

    def verify_password(self, password: str) -> bool:
        from app.core.security import TokenUtils
        return TokenUtils.verify_password(password, self.hashed_password)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
