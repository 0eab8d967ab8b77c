from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Integer,
    String,
    Text,
    Uuid,
    CheckConstraint,
)
from sqlalchemy.sql import func
from app.core.database import Base
import uuid


class Service(Base):
    """Workshop service offering with its estimated labour time."""

    __tablename__ = "services"

    # Core identity
    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(Uuid, unique=True, nullable=False, default=uuid.uuid4, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True)

    # Estimated time for one vehicle
    estimated_duration_minutes = Column(Integer, nullable=False, default=60)

    # Service behavior
    is_active = Column(Boolean, default=True, nullable=False)
    sort_order = Column(Integer, default=0)

    # Audit timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint(
            "estimated_duration_minutes > 0", name="check_positive_service_duration"
        ),
    )

    def __repr__(self):
        return (
            f"<Service(id={self.id}, name='{self.name}', "
            f"duration={self.estimated_duration_minutes}min)>"
        )
