from functools import lru_cache
import os

from pymongo import MongoClient
from dotenv import load_dotenv

from medpresecure.core.logger import logger
from medpresecure.db.appointment_store import MongoAppointmentStore

load_dotenv()

MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "medpresecure")


@lru_cache(maxsize=1)
def get_client() -> MongoClient:
    mongo_uri = os.getenv("MONGO_URI")
    if not mongo_uri:
        raise ValueError("MONGO_URI is not set in the environment")
    # tz_aware so appointment timestamps come back comparable with the ones we write
    client = MongoClient(mongo_uri, tz_aware=True)
    logger.info(f"MongoDB client created for database {MONGO_DB_NAME}")
    return client


@lru_cache(maxsize=1)
def get_store() -> MongoAppointmentStore:
    return MongoAppointmentStore(get_client(), MONGO_DB_NAME)
