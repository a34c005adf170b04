# medpresecure/models/chat.py

from pydantic import BaseModel, Field
from typing import List, Literal


class ChatMessage(BaseModel):
    role: Literal["user", "model"]
    content: str


class MedicalChatRequest(BaseModel):
    history: List[ChatMessage] = []
    question: str = Field(..., min_length=1)


class MedicalChatResponse(BaseModel):
    response: str
