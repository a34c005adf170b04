# medpresecure/services/ai_service.py

import json
import os
from functools import lru_cache
from typing import List

from dotenv import load_dotenv
from openai import OpenAI, OpenAIError
from pydantic import ValidationError

from medpresecure.core.exceptions import InsightsGenerationError
from medpresecure.core.logger import logger
from medpresecure.models.chat import ChatMessage
from medpresecure.models.prescription import PrescriptionInsights, PrescriptionInsightsInput

load_dotenv()

OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")

CHAT_FALLBACK_MESSAGE = "I apologize, but I'm currently unable to process your request. Please try again later."

MEDICAL_SYSTEM_PROMPT = """You are a helpful and cautious AI medical assistant.
Your goal is to provide general health information and guidance based on user queries.

**CRITICAL SAFETY GUIDELINES:**
1.  **DO NOT provide medical diagnoses.** If a user asks "Do I have X?", explain that you cannot diagnose but you can provide information about X.
2.  **Disclaimer:** Always remind the user that your advice is for informational purposes only and they should consult a doctor for personal medical advice.
3.  **Emergency:** If the user describes severe symptoms (chest pain, difficulty breathing, severe bleeding, etc.), immediately advise them to call emergency services or go to the nearest hospital.
4.  **Tone:** Be empathetic, professional, and clear. Use simple language.
5.  **Format:** Use Markdown for readability use bullet points/bold text where appropriate.

Answer the user's latest question based on the conversation history provided."""

INSIGHTS_SYSTEM_PROMPT = """You are an AI-powered clinical insights assistant. Your purpose is to analyze digitized medical prescriptions to extract structured information and generate safe, explainable, and non-diagnostic insights.

**Safety & Compliance Rules (CRITICAL):**
1.  **DO NOT** provide medical diagnosis or treatment recommendations.
2.  **DO NOT** replace a licensed healthcare professional. Your insights are informational only.
3.  Use neutral, calm, and cautious language at all times.
4.  Explicitly state that insights are for informational purposes.
5.  Respect patient privacy.

Return the response in this exact JSON format:
{
    "medicine_purpose": "simple, patient-friendly explanation of the medicine's purpose",
    "intake_schedule": "clear daily intake schedule in plain language",
    "common_side_effects": ["common, non-alarming side effects, framed as educational information"],
    "alerts": [{"level": "Low or Medium", "message": "e.g. duplicate medicines, repeated antibiotic use, long-term use"}],
    "follow_up_suggestions": ["e.g. consult your doctor if symptoms persist"]
}"""


@lru_cache(maxsize=1)
def get_openai_client() -> OpenAI:
    return OpenAI(api_key=os.getenv("OPENAI_API_KEY"))


def build_chat_prompt(history: List[ChatMessage], question: str) -> str:
    conversation = "\n".join(
        f"{'User' if message.role == 'user' else 'Assistant'}: {message.content}"
        for message in history
    )
    return f"{MEDICAL_SYSTEM_PROMPT}\n\nConversation History:\n{conversation}\n\nUser: {question}\nAssistant:"


def build_insights_prompt(data: PrescriptionInsightsInput) -> str:
    lines = [
        "**Input Data:**",
        f"- Medicine Name: {data.medicine_name}",
        f"- Dosage: {data.dosage}",
        f"- Frequency: {data.frequency}",
    ]
    if data.notes:
        lines.append(f"- Doctor's Notes: {data.notes}")
    if data.patient_info:
        lines.append(f"- Patient Info: Age {data.patient_info.age}, Gender {data.patient_info.gender}")
    if data.past_prescriptions:
        lines.append("- Past Prescriptions:")
        for past in data.past_prescriptions:
            lines.append(f"  - {past.medicine_name} ({past.dosage}), started on {past.start_date}")
    return "\n".join(lines)


def submit_medical_query(history: List[ChatMessage], question: str) -> str:
    """
    Answer a patient question in the context of the conversation so far.

    Never raises: model failures return a fixed apology for the chat UI.
    """
    try:
        response = get_openai_client().chat.completions.create(
            model=OPENAI_MODEL,
            messages=[{"role": "user", "content": build_chat_prompt(history, question)}],
            temperature=0.7,
        )
        answer = response.choices[0].message.content
        if not answer:
            logger.warning("Medical chat returned an empty answer")
            return CHAT_FALLBACK_MESSAGE
        return answer

    except OpenAIError as e:
        logger.error(f"Medical chat error: {str(e)}")
        return CHAT_FALLBACK_MESSAGE


def analyze_prescription(data: PrescriptionInsightsInput) -> PrescriptionInsights:
    try:
        response = get_openai_client().chat.completions.create(
            model=OPENAI_MODEL,
            messages=[
                {"role": "system", "content": INSIGHTS_SYSTEM_PROMPT},
                {"role": "user", "content": build_insights_prompt(data)},
            ],
            response_format={"type": "json_object"},
            temperature=0.2,
        )
    except OpenAIError as e:
        logger.error(f"Prescription insights request failed: {str(e)}")
        raise InsightsGenerationError("Failed to generate prescription insights.") from e

    content = response.choices[0].message.content
    if not content:
        raise InsightsGenerationError("Failed to generate prescription insights.")

    try:
        return PrescriptionInsights(**json.loads(content))
    except (json.JSONDecodeError, TypeError, ValidationError) as e:
        logger.error(f"Prescription insights response was not valid: {str(e)}")
        raise InsightsGenerationError("Failed to generate prescription insights.") from e
