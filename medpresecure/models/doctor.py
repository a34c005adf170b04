from pydantic import BaseModel, Field, ConfigDict
from typing import Literal, Optional


class DoctorCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    specialty: str
    avatar: Optional[str] = None
    location: Optional[str] = None
    rating: float = Field(0.0, ge=0.0, le=5.0)
    experience: int = Field(0, ge=0, description="Years of practice")
    gender: Literal["Male", "Female", "Other"]
    is_available_today: bool = False
    accepting_new_patients: bool = True


class DoctorOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    specialty: str
    avatar: Optional[str] = None
    location: Optional[str] = None
    rating: float = 0.0
    experience: int = 0
    gender: Optional[str] = None
    is_available_today: bool = False
    accepting_new_patients: bool = True
