"""
In-memory stand-in for MongoAppointmentStore.

Transactions read from a snapshot taken when they start and buffer their
writes. At commit, a transaction whose claimed keys were claimed by another
transaction that committed after the snapshot is rejected with
TransactionContentionError, the same first-committer-wins outcome MongoDB
produces with a WriteConflict.
"""

import copy
import itertools
import re
import threading
from datetime import datetime, timezone

from medpresecure.core.exceptions import TransactionContentionError
from medpresecure.db.appointment_store import resolve_server_timestamps


def matches(document, query):
    for field, condition in query.items():
        if field == "$or":
            if not any(matches(document, sub_query) for sub_query in condition):
                return False
            continue

        value = document.get(field)
        if not isinstance(condition, dict):
            if value != condition:
                return False
            continue

        for op, operand in condition.items():
            if op == "$ne":
                if value == operand:
                    return False
            elif op == "$in":
                if value not in operand:
                    return False
            elif op == "$gte":
                if value is None or value < operand:
                    return False
            elif op == "$lt":
                if value is None or value >= operand:
                    return False
            elif op == "$lte":
                if value is None or value > operand:
                    return False
            elif op == "$regex":
                flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
                if value is None or not re.search(operand, value, flags):
                    return False
            elif op == "$options":
                continue
            else:
                raise NotImplementedError(f"Operator {op} not supported by the in-memory store")
    return True


class InMemoryTransaction:
    def __init__(self, store, snapshot, server_time):
        self.store = store
        self.snapshot = snapshot
        self.server_time = server_time
        self.writes = []
        self.claims = set()

    def new_id(self):
        return self.store.next_id()

    def find(self, collection, query):
        documents = dict(self.snapshot.get(collection, {}))
        for written_collection, key, document in self.writes:
            if written_collection == collection:
                documents[key] = document
        return [copy.deepcopy(doc) for doc in documents.values() if matches(doc, query)]

    def claim(self, key):
        self.claims.add(key)

    def set(self, collection, key, document):
        stored = resolve_server_timestamps(document, self.server_time)
        stored["_id"] = key
        self.writes.append((collection, key, stored))
        return copy.deepcopy(stored)

    def update(self, collection, key, fields):
        current = self.find(collection, {"_id": key})
        if not current:
            return False
        merged = {**current[0], **resolve_server_timestamps(fields, self.server_time)}
        self.writes.append((collection, key, merged))
        return True


class InMemoryAppointmentStore:
    def __init__(self, fail_with=None, before_commit=None):
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self.collections = {}
        self.claim_versions = {}
        self.transactions_started = 0
        self.fail_with = fail_with
        self.before_commit = before_commit

    def next_id(self):
        with self._lock:
            return f"{next(self._ids):024x}"

    def run_transaction(self, callback):
        if self.fail_with is not None:
            raise self.fail_with

        with self._lock:
            self.transactions_started += 1
            snapshot = copy.deepcopy(self.collections)
            versions_at_start = dict(self.claim_versions)

        transaction = InMemoryTransaction(self, snapshot, datetime.now(timezone.utc))
        result = callback(transaction)

        if self.before_commit is not None:
            self.before_commit(transaction)

        with self._lock:
            for key in transaction.claims:
                if self.claim_versions.get(key, 0) != versions_at_start.get(key, 0):
                    raise TransactionContentionError(f"Write conflict on {key}")
            for collection, key, document in transaction.writes:
                self.collections.setdefault(collection, {})[key] = document
            for key in transaction.claims:
                self.claim_versions[key] = self.claim_versions.get(key, 0) + 1
        return result

    def query(self, collection, query, sort=None, limit=0):
        if self.fail_with is not None:
            raise self.fail_with

        with self._lock:
            documents = [
                copy.deepcopy(doc)
                for doc in self.collections.get(collection, {}).values()
                if matches(doc, query)
            ]
        for field, direction in reversed(sort or []):
            documents.sort(key=lambda doc: doc.get(field), reverse=direction < 0)
        return documents[:limit] if limit else documents

    def insert(self, collection, document):
        if self.fail_with is not None:
            raise self.fail_with

        stored = resolve_server_timestamps(document, datetime.now(timezone.utc))
        stored.setdefault("_id", self.next_id())
        with self._lock:
            self.collections.setdefault(collection, {})[stored["_id"]] = stored
        return copy.deepcopy(stored)

    def documents(self, collection):
        with self._lock:
            return copy.deepcopy(list(self.collections.get(collection, {}).values()))
