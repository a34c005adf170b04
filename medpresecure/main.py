import os

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from medpresecure.api import appointments, chat, doctors, prescriptions
from medpresecure.core.logger import logger

load_dotenv()

CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if origin.strip()]

app = FastAPI(title="MedPresecure", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


app.include_router(appointments.router)
app.include_router(doctors.router)
app.include_router(prescriptions.router)
app.include_router(chat.router)

logger.info("MedPresecure API routes registered")


@app.get("/")
async def root():
    return {"message": "MedPresecure API!"}
