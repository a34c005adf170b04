from datetime import date
from typing import Any, Dict, List, Optional

from medpresecure.core.exceptions import AppointmentNotFoundError
from medpresecure.core.logger import logger
from medpresecure.db.appointment_store import APPOINTMENTS, PATIENT_APPOINTMENTS, SERVER_TIMESTAMP
from medpresecure.models.appointment import Appointment
from medpresecure.services.booking_service import cancelled_frees_slot_default, projection_key
from medpresecure.utils.date_utils import day_bounds, format_time_slot


def serialize_appointment(doc: Dict[str, Any]) -> Appointment:
    return Appointment(**{k: v for k, v in doc.items() if k != "_id"})


def get_booked_slots(
        store,
        doctor_id: str,
        day: date,
        cancelled_frees_slot: Optional[bool] = None
) -> List[str]:
    """Slot labels taken for ``doctor_id`` on ``day``, under the same cancelled-slot policy as booking"""
    if cancelled_frees_slot is None:
        cancelled_frees_slot = cancelled_frees_slot_default()

    start, end = day_bounds(day)
    query: Dict[str, Any] = {
        "doctor_id": doctor_id,
        "appointment_datetime": {"$gte": start, "$lt": end},
    }
    if cancelled_frees_slot:
        query["status"] = {"$ne": "Cancelled"}

    appointments = store.query(APPOINTMENTS, query, sort=[("appointment_datetime", 1)])

    # a freed slot can hold a cancelled record and its rebooking
    booked: List[str] = []
    for appt in appointments:
        label = format_time_slot(appt["appointment_datetime"])
        if label not in booked:
            booked.append(label)
    return booked


def list_patient_appointments(
        store,
        patient_id: str,
        status: Optional[str] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None
) -> List[Appointment]:
    query: Dict[str, Any] = {"patient_id": patient_id}

    if status:
        query["status"] = status

    date_filter = {}
    if from_date:
        date_filter["$gte"] = day_bounds(from_date)[0]
    if to_date:
        date_filter["$lt"] = day_bounds(to_date)[1]
    if date_filter:
        query["appointment_datetime"] = date_filter

    appointments = store.query(PATIENT_APPOINTMENTS, query, sort=[("appointment_datetime", -1)])
    return [serialize_appointment(appt) for appt in appointments]


def update_appointment_status(store, appointment_id: str, status: str) -> Appointment:
    """Move an appointment to ``status`` in the canonical record and the patient projection together"""

    def apply(transaction) -> Dict[str, Any]:
        existing = transaction.find(APPOINTMENTS, {"_id": appointment_id})
        if not existing:
            raise AppointmentNotFoundError(appointment_id)

        fields = {"status": status, "updated_at": SERVER_TIMESTAMP}
        transaction.update(APPOINTMENTS, appointment_id, fields)
        transaction.update(
            PATIENT_APPOINTMENTS,
            projection_key(existing[0]["patient_id"], appointment_id),
            fields,
        )
        return transaction.find(APPOINTMENTS, {"_id": appointment_id})[0]

    updated = store.run_transaction(apply)
    logger.info(f"Appointment {appointment_id} status changed to {status}")
    return serialize_appointment(updated)
