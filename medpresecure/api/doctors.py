from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List, Optional

from medpresecure.core.exceptions import StorageError
from medpresecure.core.logger import logger
from medpresecure.core.security import get_current_user_id
from medpresecure.crud import doctor_crud
from medpresecure.db.client import get_store
from medpresecure.models.doctor import DoctorCreate, DoctorOut

router = APIRouter(
    prefix="/doctors",
    tags=["Doctors"]
)


@router.post("/", status_code=201)
def add_doctor(
        doctor: DoctorCreate,
        _user_id: str = Depends(get_current_user_id),
        store=Depends(get_store)
):
    try:
        doctor_id = doctor_crud.create_doctor(store, doctor.model_dump())
    except StorageError as e:
        logger.error(f"Error adding doctor: {str(e)}")
        raise HTTPException(status_code=503, detail="Failed to add doctor")
    return {"id": doctor_id}


@router.get("/", response_model=List[DoctorOut])
def get_doctors(
        specialty: Optional[str] = Query(None, description="Filter by specialty, 'all' for every specialty"),
        gender: Optional[str] = Query(None, description="Filter by gender"),
        available_today: Optional[bool] = Query(None),
        accepting_new_patients: Optional[bool] = Query(None),
        search: Optional[str] = Query(None, description="Search in doctor name or specialty"),
        min_experience: Optional[int] = Query(None, ge=0, description="Minimum years of practice"),
        max_experience: Optional[int] = Query(None, ge=0, description="Maximum years of practice"),
        store=Depends(get_store)
):
    if min_experience is not None and max_experience is not None and min_experience > max_experience:
        raise HTTPException(status_code=400, detail="min_experience must not exceed max_experience")

    try:
        return doctor_crud.list_doctors(
            store,
            specialty=specialty,
            gender=gender,
            available_today=available_today,
            accepting_new_patients=accepting_new_patients,
            search=search,
            min_experience=min_experience,
            max_experience=max_experience,
        )
    except StorageError as e:
        logger.error(f"Error listing doctors: {str(e)}")
        raise HTTPException(status_code=503, detail="Failed to list doctors")


@router.get("/{doctor_id}", response_model=DoctorOut)
def get_doctor(doctor_id: str, store=Depends(get_store)):
    try:
        doctor = doctor_crud.get_doctor(store, doctor_id)
    except StorageError as e:
        logger.error(f"Error fetching doctor {doctor_id}: {str(e)}")
        raise HTTPException(status_code=503, detail="Failed to fetch doctor")

    if not doctor:
        raise HTTPException(status_code=404, detail="Doctor not found")
    return doctor
