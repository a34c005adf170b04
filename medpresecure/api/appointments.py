# medpresecure/api/appointments.py

from fastapi import APIRouter, HTTPException, Depends, Query
from fastapi import status as http_status
from typing import Optional, List
from datetime import date

from medpresecure.core.exceptions import (
    AppointmentNotFoundError,
    BookingValidationError,
    SlotConflictError,
    StorageError,
)
from medpresecure.core.logger import logger
from medpresecure.core.security import get_current_user_id
from medpresecure.crud import appointment_crud
from medpresecure.db.client import get_store
from medpresecure.models.appointment import (
    Appointment,
    AppointmentStatus,
    BookingRequest,
    SlotAvailability,
    StatusUpdateRequest,
)
from medpresecure.services.booking_service import SlotReservationCoordinator
from medpresecure.utils.date_utils import available_slots, combine_slot

router = APIRouter(
    prefix="/appointments",
    tags=["Appointments"]
)

STORAGE_ERROR_DETAIL = "The appointment service is temporarily unavailable. Please try again."


def get_coordinator(store=Depends(get_store)) -> SlotReservationCoordinator:
    """Dependency to get the booking coordinator with its store"""
    return SlotReservationCoordinator(store)


@router.post("/book", response_model=Appointment, status_code=http_status.HTTP_201_CREATED)
def book_appointment(
        booking: BookingRequest,
        patient_id: str = Depends(get_current_user_id),
        coordinator: SlotReservationCoordinator = Depends(get_coordinator)
):
    """
    Book a time slot with a doctor for the calling patient.
    """
    try:
        appointment_datetime = combine_slot(booking.appointment_date, booking.time_slot)
        return coordinator.reserve_slot(
            patient_id=patient_id,
            doctor_id=booking.doctor_id,
            date_time=appointment_datetime,
            appointment_type=booking.type,
            notes=booking.notes,
        )

    except SlotConflictError as e:
        raise HTTPException(status_code=http_status.HTTP_409_CONFLICT, detail=str(e))
    except BookingValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except StorageError as e:
        logger.error(f"Storage failure while booking for patient {patient_id}: {str(e)}")
        raise HTTPException(status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE, detail=STORAGE_ERROR_DETAIL)
    except Exception as e:
        logger.error(f"Error booking appointment: {str(e)}")
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to book appointment"
        )


@router.get("/slots", response_model=SlotAvailability)
def get_slot_availability(
        doctor_id: str = Query(..., min_length=1, description="Doctor ID"),
        appointment_date: date = Query(..., alias="date", description="Day to check (YYYY-MM-DD)"),
        _patient_id: str = Depends(get_current_user_id),
        store=Depends(get_store)
):
    """
    Booked and still-free slots for a doctor on a given day.
    """
    try:
        booked = appointment_crud.get_booked_slots(store, doctor_id, appointment_date)
        return SlotAvailability(
            doctor_id=doctor_id,
            appointment_date=appointment_date,
            booked_slots=booked,
            available_slots=available_slots(booked),
        )

    except StorageError as e:
        logger.error(f"Could not fetch available slots for doctor {doctor_id}: {str(e)}")
        raise HTTPException(status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE, detail=STORAGE_ERROR_DETAIL)


@router.get("/", response_model=List[Appointment])
def list_my_appointments(
        appointment_status: Optional[AppointmentStatus] = Query(None, alias="status", description="Filter by status"),
        from_date: Optional[date] = Query(None, description="Filter appointments from this date (YYYY-MM-DD)"),
        to_date: Optional[date] = Query(None, description="Filter appointments to this date (YYYY-MM-DD)"),
        patient_id: str = Depends(get_current_user_id),
        store=Depends(get_store)
):
    """
    List the caller's appointments, newest first.
    """
    if from_date and to_date and from_date > to_date:
        raise HTTPException(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            detail="from_date must not be after to_date"
        )

    try:
        appointments = appointment_crud.list_patient_appointments(
            store, patient_id, status=appointment_status, from_date=from_date, to_date=to_date
        )
        logger.info(f"Listed {len(appointments)} appointments for patient {patient_id}")
        return appointments

    except StorageError as e:
        logger.error(f"Error listing appointments for patient {patient_id}: {str(e)}")
        raise HTTPException(status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE, detail=STORAGE_ERROR_DETAIL)


@router.patch("/{appointment_id}/status", response_model=Appointment)
def update_appointment_status(
        appointment_id: str,
        status_update: StatusUpdateRequest,
        _user_id: str = Depends(get_current_user_id),
        store=Depends(get_store)
):
    """
    Update only the appointment status.
    """
    try:
        return appointment_crud.update_appointment_status(store, appointment_id, status_update.status)

    except AppointmentNotFoundError as e:
        raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail=str(e))
    except StorageError as e:
        logger.error(f"Error updating appointment status {appointment_id}: {str(e)}")
        raise HTTPException(status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE, detail=STORAGE_ERROR_DETAIL)
