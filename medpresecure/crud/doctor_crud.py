import re
from typing import Any, Dict, List, Optional

from medpresecure.db.appointment_store import DOCTORS


def serialize_doctor(doc: dict) -> dict:
    return {
        "id": str(doc["_id"]),
        "name": doc.get("name"),
        "specialty": doc.get("specialty"),
        "avatar": doc.get("avatar"),
        "location": doc.get("location"),
        "rating": doc.get("rating", 0.0),
        "experience": doc.get("experience", 0),
        "gender": doc.get("gender"),
        "is_available_today": doc.get("is_available_today", False),
        "accepting_new_patients": doc.get("accepting_new_patients", True),
    }


def build_doctor_query(
        specialty: Optional[str] = None,
        gender: Optional[str] = None,
        available_today: Optional[bool] = None,
        accepting_new_patients: Optional[bool] = None,
        search: Optional[str] = None,
        min_experience: Optional[int] = None,
        max_experience: Optional[int] = None
) -> Dict[str, Any]:
    """
    Mongo filter for the doctor directory.

    The availability flags narrow the list only when set; an unchecked box
    (False or None) leaves it unfiltered.
    """
    query: Dict[str, Any] = {}

    if specialty and specialty.lower() != "all":
        query["specialty"] = specialty
    if gender and gender.lower() != "all":
        query["gender"] = gender
    if available_today:
        query["is_available_today"] = True
    if accepting_new_patients:
        query["accepting_new_patients"] = True

    experience_filter = {}
    if min_experience is not None:
        experience_filter["$gte"] = min_experience
    if max_experience is not None:
        experience_filter["$lte"] = max_experience
    if experience_filter:
        query["experience"] = experience_filter

    if search and search.strip():
        pattern = re.escape(search.strip())
        query["$or"] = [
            {"name": {"$regex": pattern, "$options": "i"}},
            {"specialty": {"$regex": pattern, "$options": "i"}},
        ]

    return query


def create_doctor(store, data: dict) -> str:
    result = store.insert(DOCTORS, data)
    return str(result["_id"])


def list_doctors(store, **filters) -> List[dict]:
    doctors = store.query(DOCTORS, build_doctor_query(**filters), sort=[("name", 1)])
    return [serialize_doctor(doc) for doc in doctors]


def get_doctor(store, doctor_id: str) -> Optional[dict]:
    doctors = store.query(DOCTORS, {"_id": doctor_id}, limit=1)
    return serialize_doctor(doctors[0]) if doctors else None
