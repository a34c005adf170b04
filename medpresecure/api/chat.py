from fastapi import APIRouter, Depends

from medpresecure.core.security import get_current_user_id
from medpresecure.models.chat import MedicalChatRequest, MedicalChatResponse
from medpresecure.services import ai_service

router = APIRouter(
    prefix="/chat",
    tags=["Chat"]
)


@router.post("/", response_model=MedicalChatResponse)
def medical_chat(
        request: MedicalChatRequest,
        _patient_id: str = Depends(get_current_user_id)
):
    answer = ai_service.submit_medical_query(request.history, request.question)
    return MedicalChatResponse(response=answer)
