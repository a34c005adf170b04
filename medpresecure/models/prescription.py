# medpresecure/models/prescription.py

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Literal, Optional


class PrescriptionCreate(BaseModel):
    """Model for adding a prescription to the caller's record"""
    medicine_name: str = Field(..., min_length=1, description="Medicine name is required.")
    dosage: str = Field(..., min_length=1, description="Dosage is required.")
    frequency: str = Field(..., min_length=1, description="Frequency is required.")
    notes: str = ""


class Prescription(BaseModel):
    id: str
    patient_id: str
    medicine_name: str
    dosage: str
    frequency: str
    notes: str = ""
    attachment_url: str = ""
    status: str = "Active"
    created_at: datetime


class PatientInfo(BaseModel):
    age: Optional[int] = Field(None, ge=0, le=150)
    gender: Optional[str] = None


class PastPrescription(BaseModel):
    medicine_name: str
    dosage: str
    start_date: str


class PrescriptionInsightsInput(BaseModel):
    medicine_name: str = Field(..., min_length=1)
    dosage: str = Field(..., min_length=1)
    frequency: str = Field(..., min_length=1, description="e.g. twice daily")
    notes: Optional[str] = None
    patient_info: Optional[PatientInfo] = None
    past_prescriptions: Optional[List[PastPrescription]] = None


class InsightAlert(BaseModel):
    level: Literal["Low", "Medium"]
    message: str


class PrescriptionInsights(BaseModel):
    medicine_purpose: str
    intake_schedule: str
    common_side_effects: List[str]
    alerts: List[InsightAlert]
    follow_up_suggestions: List[str]
