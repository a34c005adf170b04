# medpresecure/services/booking_service.py

import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from medpresecure.core.exceptions import (
    BookingValidationError,
    SlotConflictError,
    TransactionContentionError,
)
from medpresecure.core.logger import logger
from medpresecure.db.appointment_store import (
    APPOINTMENTS,
    PATIENT_APPOINTMENTS,
    SERVER_TIMESTAMP,
)
from medpresecure.models.appointment import APPOINTMENT_TYPES, Appointment

load_dotenv()


def cancelled_frees_slot_default() -> bool:
    return os.getenv("CANCELLED_FREES_SLOT", "false").strip().lower() in ("1", "true", "yes")


def slot_key(doctor_id: str, appointment_datetime: datetime) -> str:
    return f"{doctor_id}|{appointment_datetime.astimezone(timezone.utc).isoformat()}"


def projection_key(patient_id: str, appointment_id: str) -> str:
    return f"{patient_id}/{appointment_id}"


class SlotReservationCoordinator:
    """
    Books doctor time slots without double-booking.

    The store handle is injected. It must provide ``run_transaction(callback)``
    whose callback receives a transaction exposing ``claim``, ``find``,
    ``new_id`` and ``set``. Correctness rests only on the store's transaction
    isolation; this class keeps no state between calls.
    """

    def __init__(self, store, cancelled_frees_slot: Optional[bool] = None):
        if store is None:
            raise ValueError("Appointment store is required")
        self.store = store
        if cancelled_frees_slot is None:
            cancelled_frees_slot = cancelled_frees_slot_default()
        self.cancelled_frees_slot = cancelled_frees_slot

    def reserve_slot(
            self,
            patient_id: str,
            doctor_id: str,
            date_time: datetime,
            appointment_type: str,
            notes: str = ""
    ) -> Appointment:
        """
        Commit a Pending appointment for ``doctor_id`` at ``date_time``.

        The canonical record and the patient projection are written in the
        same transaction, so either both exist afterwards or neither does.

        Raises:
            BookingValidationError: malformed input; no transaction is opened
            SlotConflictError: the slot is taken, or a concurrent booking of
                the same slot committed first
            StorageError: any other backend failure
        """
        self._validate(patient_id, doctor_id, date_time, appointment_type)
        key = slot_key(doctor_id, date_time)

        def book(transaction) -> Dict[str, Any]:
            transaction.claim(key)

            query = {"doctor_id": doctor_id, "appointment_datetime": date_time}
            if self.cancelled_frees_slot:
                query["status"] = {"$ne": "Cancelled"}
            if transaction.find(APPOINTMENTS, query):
                raise SlotConflictError(doctor_id, date_time)

            appointment_id = transaction.new_id()
            record = {
                "id": appointment_id,
                "patient_id": patient_id,
                "doctor_id": doctor_id,
                "appointment_datetime": date_time,
                "type": appointment_type,
                "status": "Pending",
                "notes": notes or "",
                "created_at": SERVER_TIMESTAMP,
            }
            stored = transaction.set(APPOINTMENTS, appointment_id, record)
            transaction.set(PATIENT_APPOINTMENTS, projection_key(patient_id, appointment_id), record)
            return stored

        try:
            stored = self.store.run_transaction(book)
        except SlotConflictError:
            logger.warning(f"Slot {key} already booked; rejected request from patient {patient_id}")
            raise
        except TransactionContentionError as e:
            logger.warning(f"Slot {key} lost a concurrent booking race for patient {patient_id}")
            raise SlotConflictError(doctor_id, date_time) from e

        appointment = Appointment(**{k: v for k, v in stored.items() if k != "_id"})
        logger.info(f"Appointment {appointment.id} booked: doctor {doctor_id} at {date_time.isoformat()} for patient {patient_id}")
        return appointment

    def _validate(self, patient_id: str, doctor_id: str, date_time: datetime, appointment_type: str) -> None:
        if not patient_id or not str(patient_id).strip():
            raise BookingValidationError("Patient ID is required")
        if not doctor_id or not str(doctor_id).strip():
            raise BookingValidationError("Doctor ID is required")
        if not isinstance(date_time, datetime):
            raise BookingValidationError("Appointment time must be a datetime")
        if date_time.tzinfo is None or date_time.utcoffset() is None:
            raise BookingValidationError("Appointment time must be timezone-aware")
        if appointment_type not in APPOINTMENT_TYPES:
            raise BookingValidationError(f"Appointment type must be one of {', '.join(APPOINTMENT_TYPES)}")
