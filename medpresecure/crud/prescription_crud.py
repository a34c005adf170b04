from typing import List

from medpresecure.core.logger import logger
from medpresecure.db.appointment_store import PRESCRIPTIONS, SERVER_TIMESTAMP
from medpresecure.models.prescription import Prescription, PrescriptionCreate


def serialize_prescription(doc: dict) -> Prescription:
    return Prescription(id=str(doc["_id"]), **{k: v for k, v in doc.items() if k not in ("_id", "id")})


def create_prescription(store, patient_id: str, data: PrescriptionCreate) -> Prescription:
    document = {
        "patient_id": patient_id,
        "medicine_name": data.medicine_name,
        "dosage": data.dosage,
        "frequency": data.frequency,
        "notes": data.notes or "",
        "attachment_url": "",
        "status": "Active",
        "created_at": SERVER_TIMESTAMP,
    }
    stored = store.insert(PRESCRIPTIONS, document)
    logger.info(f"Prescription {stored['_id']} added for patient {patient_id}")
    return serialize_prescription(stored)


def list_prescriptions(store, patient_id: str) -> List[Prescription]:
    prescriptions = store.query(PRESCRIPTIONS, {"patient_id": patient_id}, sort=[("created_at", -1)])
    return [serialize_prescription(doc) for doc in prescriptions]
