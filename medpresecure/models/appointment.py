from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime
from typing import Literal, List, Optional

from medpresecure.core.exceptions import BookingValidationError
from medpresecure.utils.date_utils import is_offered_slot, parse_time_slot

AppointmentType = Literal["Video", "In-person"]
AppointmentStatus = Literal["Pending", "Confirmed", "Cancelled", "Completed"]

APPOINTMENT_TYPES = ("Video", "In-person")


class BookingRequest(BaseModel):
    """Body of a booking call; the patient comes from the bearer token"""
    doctor_id: str = Field(..., min_length=1, description="ID of the doctor to book")
    appointment_date: date = Field(..., description="Appointment date in YYYY-MM-DD format")
    time_slot: str = Field(..., description="Slot label, e.g. '10:30 AM'")
    type: AppointmentType = "Video"
    notes: str = Field("", max_length=1000, description="Reason for visit")

    @field_validator('time_slot')
    @classmethod
    def validate_time_slot(cls, v: str) -> str:
        try:
            parse_time_slot(v)
        except BookingValidationError as e:
            raise ValueError(str(e)) from e
        if not is_offered_slot(v):
            raise ValueError(f"{v} is not an offered appointment slot")
        return v.strip().upper()


class Appointment(BaseModel):
    id: str
    patient_id: str
    doctor_id: str
    appointment_datetime: datetime
    type: AppointmentType
    status: AppointmentStatus
    notes: str = ""
    created_at: datetime
    updated_at: Optional[datetime] = None


class StatusUpdateRequest(BaseModel):
    status: AppointmentStatus


class SlotAvailability(BaseModel):
    doctor_id: str
    appointment_date: date
    booked_slots: List[str]
    available_slots: List[str]
