# medpresecure/db/appointment_store.py

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from bson import ObjectId
from pymongo import MongoClient, ReadPreference
from pymongo.errors import DuplicateKeyError, OperationFailure, PyMongoError
from pymongo.read_concern import ReadConcern
from pymongo.write_concern import WriteConcern

from medpresecure.core.exceptions import StorageError, TransactionContentionError
from medpresecure.core.logger import get_module_logger

logger = get_module_logger("store")

APPOINTMENTS = "appointments"
PATIENT_APPOINTMENTS = "patient_appointments"
SLOT_CLAIMS = "slot_claims"
PRESCRIPTIONS = "prescriptions"
DOCTORS = "doctors"

WRITE_CONFLICT_CODE = 112


class _ServerTimestamp:
    """Placeholder replaced by the store's clock when a document is written"""

    def __repr__(self):
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


def resolve_server_timestamps(document: Dict[str, Any], server_time: datetime) -> Dict[str, Any]:
    return {
        key: server_time if value is SERVER_TIMESTAMP else value
        for key, value in document.items()
    }


def is_write_conflict(error: PyMongoError) -> bool:
    if isinstance(error, DuplicateKeyError):
        return True
    return isinstance(error, OperationFailure) and error.code == WRITE_CONFLICT_CODE


class MongoTransaction:
    """
    Operations available to a transaction callback.

    Every read and write goes through the same client session, so the whole
    callback commits or aborts as one unit.
    """

    def __init__(self, db, session, server_time: datetime):
        self.db = db
        self.session = session
        self.server_time = server_time

    def new_id(self) -> str:
        return str(ObjectId())

    def find(self, collection: str, query: Dict[str, Any]) -> List[Dict[str, Any]]:
        return list(self.db[collection].find(query, session=self.session))

    def claim(self, key: str) -> None:
        """
        Write the claim document for ``key``.

        Two open transactions claiming the same key cannot both commit:
        MongoDB rejects the second writer with a WriteConflict.
        """
        self.db[SLOT_CLAIMS].update_one(
            {"_id": key},
            {"$inc": {"claims": 1}, "$set": {"claimed_at": self.server_time}},
            upsert=True,
            session=self.session,
        )

    def set(self, collection: str, key: str, document: Dict[str, Any]) -> Dict[str, Any]:
        stored = resolve_server_timestamps(document, self.server_time)
        stored["_id"] = key
        self.db[collection].replace_one({"_id": key}, stored, upsert=True, session=self.session)
        return stored

    def update(self, collection: str, key: str, fields: Dict[str, Any]) -> bool:
        result = self.db[collection].update_one(
            {"_id": key},
            {"$set": resolve_server_timestamps(fields, self.server_time)},
            session=self.session,
        )
        return result.matched_count > 0


class MongoAppointmentStore:
    """
    Document store handle backed by MongoDB multi-document transactions.

    Requires a replica set or sharded cluster; standalone servers do not
    support transactions.
    """

    def __init__(self, client: MongoClient, db_name: str):
        self.client = client
        self.db = client[db_name]

    def run_transaction(self, callback: Callable[[MongoTransaction], Any]) -> Any:
        """
        Run ``callback`` inside a snapshot transaction and commit it.

        Exceptions raised by the callback abort the transaction and propagate
        unchanged. A lost write conflict raises TransactionContentionError and
        any other driver failure raises StorageError. Nothing is retried here.
        """
        try:
            with self.client.start_session() as session:
                with session.start_transaction(
                        read_concern=ReadConcern("snapshot"),
                        write_concern=WriteConcern("majority"),
                        read_preference=ReadPreference.PRIMARY,
                ):
                    transaction = MongoTransaction(self.db, session, datetime.now(timezone.utc))
                    result = callback(transaction)
            return result
        except PyMongoError as e:
            if is_write_conflict(e):
                logger.info(f"Transaction lost a write conflict: {str(e)}")
                raise TransactionContentionError(str(e)) from e
            logger.error(f"Transaction failed: {str(e)}")
            raise StorageError(f"Storage backend failure: {str(e)}") from e

    def query(
            self,
            collection: str,
            query: Dict[str, Any],
            sort: Optional[List[Tuple[str, int]]] = None,
            limit: int = 0
    ) -> List[Dict[str, Any]]:
        try:
            cursor = self.db[collection].find(query)
            if sort:
                cursor = cursor.sort(sort)
            if limit:
                cursor = cursor.limit(limit)
            return list(cursor)
        except PyMongoError as e:
            logger.error(f"Query on {collection} failed: {str(e)}")
            raise StorageError(f"Storage backend failure: {str(e)}") from e

    def insert(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
        stored = resolve_server_timestamps(document, datetime.now(timezone.utc))
        stored.setdefault("_id", str(ObjectId()))
        try:
            self.db[collection].insert_one(stored)
        except PyMongoError as e:
            logger.error(f"Insert into {collection} failed: {str(e)}")
            raise StorageError(f"Storage backend failure: {str(e)}") from e
        return stored
