from sqlalchemy import Column, Date, DateTime, Integer
from sqlalchemy.sql import func

from app.core.database import Base


class BookingDay(Base):
    """Per-date version counter that serializes reservations on that date.

    A booking reads the version, decides, then compare-and-sets version + 1;
    a lost compare-and-set means another booking for the same date committed
    in between and the decision must be re-made.
    """

    __tablename__ = "booking_days"

    day = Column(Date, primary_key=True)
    version = Column(Integer, nullable=False, default=0)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self):
        return f"<BookingDay(day={self.day}, version={self.version})>"
