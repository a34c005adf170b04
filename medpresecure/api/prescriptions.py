# medpresecure/api/prescriptions.py

from fastapi import APIRouter, Depends, HTTPException
from typing import List

from medpresecure.core.exceptions import InsightsGenerationError, StorageError
from medpresecure.core.logger import logger
from medpresecure.core.security import get_current_user_id
from medpresecure.crud import prescription_crud
from medpresecure.db.client import get_store
from medpresecure.models.prescription import (
    Prescription,
    PrescriptionCreate,
    PrescriptionInsights,
    PrescriptionInsightsInput,
)
from medpresecure.services import ai_service

router = APIRouter(
    prefix="/prescriptions",
    tags=["Prescriptions"]
)


@router.post("/", response_model=Prescription, status_code=201)
def add_prescription(
        prescription: PrescriptionCreate,
        patient_id: str = Depends(get_current_user_id),
        store=Depends(get_store)
):
    """Add a prescription to the caller's record"""
    try:
        return prescription_crud.create_prescription(store, patient_id, prescription)
    except StorageError as e:
        logger.error(f"Error adding prescription for patient {patient_id}: {str(e)}")
        raise HTTPException(status_code=503, detail="Failed to add prescription")


@router.get("/", response_model=List[Prescription])
def list_prescriptions(
        patient_id: str = Depends(get_current_user_id),
        store=Depends(get_store)
):
    try:
        return prescription_crud.list_prescriptions(store, patient_id)
    except StorageError as e:
        logger.error(f"Error listing prescriptions for patient {patient_id}: {str(e)}")
        raise HTTPException(status_code=503, detail="Failed to list prescriptions")


@router.post("/insights", response_model=PrescriptionInsights)
def prescription_insights(
        data: PrescriptionInsightsInput,
        _patient_id: str = Depends(get_current_user_id)
):
    """Informational, non-diagnostic insights about a prescription"""
    try:
        return ai_service.analyze_prescription(data)
    except InsightsGenerationError as e:
        raise HTTPException(status_code=502, detail=str(e))
