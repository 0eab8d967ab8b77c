import enum
import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Integer,
    String,
    Uuid,
)
from sqlalchemy.sql import func

from app.core.database import Base


class UserRole(enum.Enum):
    ADMIN = "admin"
    EMPLOYEE = "employee"
    CUSTOMER = "customer"


class User(Base):
    """Platform user. Technicians are users with the employee role."""

    __tablename__ = "users"

    # Core identity
    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(Uuid, unique=True, nullable=False, default=uuid.uuid4, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=True)
    phone = Column(String, nullable=True)

    # Role and status
    role = Column(String(20), nullable=False, default=UserRole.CUSTOMER.value, index=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Audit timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    @property
    def is_technician(self) -> bool:
        return self.role == UserRole.EMPLOYEE.value

    def __repr__(self):
        return (
            f"<User(id={self.id}, name='{self.name}', role={self.role}, "
            f"active={self.is_active})>"
        )
