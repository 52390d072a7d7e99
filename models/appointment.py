from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, CheckConstraint
from sqlalchemy.types import Enum as SAEnum

from models.base_model import BaseModel, Base


class AppointmentStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    DONE = "DONE"


class Appointment(BaseModel, Base):
    __tablename__ = "appointments"

    code = Column(String(50), nullable=False, index=True)
    status = Column(
        SAEnum(AppointmentStatus, name="appointment_status", native_enum=False),
        nullable=False,
        default=AppointmentStatus.PENDING,
    )
    start_time = Column(DateTime(timezone=True), nullable=False)
    total_price = Column(Integer, nullable=False, default=0)
    is_online = Column(Boolean, nullable=False, default=True)
    message = Column(Text, nullable=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    __table_args__ = (
        CheckConstraint("total_price >= 0", name="ck_appointments_total_price_nonnegative"),
    )
