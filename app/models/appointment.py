from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.core.database import Base
import enum
import uuid
from datetime import datetime, timezone
from typing import Optional


class AppointmentStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_SERVICE = "in-service"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_active(self) -> bool:
        """Non-terminal appointments count toward capacity and conflicts."""
        return self not in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED})


class Appointment(Base):
    """Workshop appointment for one or more vehicles of a customer."""

    __tablename__ = "appointments"

    # Core identity
    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(Uuid, unique=True, nullable=False, default=uuid.uuid4, index=True)

    # Customer and vehicle
    customer_name = Column(String(255), nullable=False)
    customer_phone = Column(String(50), nullable=True)
    customer_email = Column(String(255), nullable=True)
    vehicle_number = Column(String(20), nullable=True)
    vehicle_count = Column(Integer, nullable=False, default=1)
    service_ids = Column(JSON, nullable=False, default=list)

    # Scheduling details. New bookings carry scheduled_time + duration_minutes;
    # older ones may only have the free-text time_window or a bare scheduled_time.
    appointment_date = Column(Date, nullable=False, index=True)
    time_window = Column(String(50), nullable=True)
    scheduled_time = Column(String(5), nullable=True)
    duration_minutes = Column(Integer, nullable=True)

    # Assignment
    assigned_employee_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    # Status management
    status = Column(
        String(20), nullable=False, default=AppointmentStatus.PENDING.value, index=True
    )
    previous_status = Column(String(20), nullable=True)
    status_changed_at = Column(DateTime(timezone=True), server_default=func.now())
    cancellation_reason = Column(Text, nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    notes = Column(Text, nullable=True)

    # Audit timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint(
            "duration_minutes IS NULL OR duration_minutes > 0",
            name="check_positive_duration",
        ),
        CheckConstraint("vehicle_count >= 1", name="check_positive_vehicle_count"),
        Index("ix_appointments_employee_date", "assigned_employee_id", "appointment_date"),
    )

    assigned_employee = relationship("User", foreign_keys=[assigned_employee_id])

    def can_transition_to(self, new_status: AppointmentStatus) -> bool:
        """Check if appointment can transition to the new status."""
        current = AppointmentStatus(self.status)

        allowed_transitions = {
            AppointmentStatus.PENDING: [
                AppointmentStatus.CONFIRMED,
                AppointmentStatus.CANCELLED,
            ],
            AppointmentStatus.CONFIRMED: [
                AppointmentStatus.IN_SERVICE,
                AppointmentStatus.CANCELLED,
            ],
            AppointmentStatus.IN_SERVICE: [AppointmentStatus.COMPLETED],
            AppointmentStatus.COMPLETED: [],  # Final state
            AppointmentStatus.CANCELLED: [],  # Final state
        }

        return new_status in allowed_transitions.get(current, [])

    def transition_to(
        self, new_status: AppointmentStatus, reason: Optional[str] = None
    ) -> bool:
        """Transition appointment to new status with validation."""
        if not self.can_transition_to(new_status):
            return False

        now = datetime.now(timezone.utc)
        self.previous_status = self.status
        self.status = new_status.value
        self.status_changed_at = now

        if new_status == AppointmentStatus.CANCELLED:
            self.cancelled_at = now
            self.cancellation_reason = reason or "Not specified"
        elif new_status == AppointmentStatus.COMPLETED:
            self.completed_at = now

        return True

    def can_be_rescheduled(self) -> bool:
        """Only appointments not yet in the bay can move or change technician."""
        return self.status in (
            AppointmentStatus.PENDING.value,
            AppointmentStatus.CONFIRMED.value,
        )

    @property
    def is_active(self) -> bool:
        return AppointmentStatus(self.status).is_active

    def __repr__(self):
        return (
            f"<Appointment(id={self.id}, status='{self.status}', "
            f"date='{self.appointment_date}', time='{self.scheduled_time or self.time_window}', "
            f"employee_id={self.assigned_employee_id})>"
        )
