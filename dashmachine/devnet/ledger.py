"""
In-memory ledger state for the devnet gateway.
"""

from __future__ import annotations

import secrets
import threading
import time
from dataclasses import dataclass
from typing import Any

from dashmachine.common.exceptions import LedgerRejectedError
from dashmachine.common.models import (
    Document,
    DocumentBatch,
    Identity,
    IdentityPublicKey,
)

HTTP_NOT_FOUND = 404
HTTP_CONFLICT = 409
SUPPORTED_OPERATORS = ("==", "in")


@dataclass(frozen=True)
class _StoredDocument:
    document: Document
    visible_at: float


def _field(data: dict[str, Any], path: str) -> Any:
    value: Any = data
    for part in path.split("."):
        if not isinstance(value, dict) or part not in value:
            return None
        value = value[part]
    return value


def _check_clause(clause: list[Any]) -> None:
    if not isinstance(clause, list) or len(clause) != 3:  # noqa: PLR2004
        msg = f"Invalid where clause: {clause!r}"
        raise LedgerRejectedError(msg)
    if clause[1] not in SUPPORTED_OPERATORS:
        msg = f"Unsupported where operator: {clause[1]!r}"
        raise LedgerRejectedError(msg)


def _matches(document: Document, clause: list[Any]) -> bool:
    field, op, expected = clause
    if field in ("$id", "$ownerId"):
        actual = document.id if field == "$id" else document.owner_id
    else:
        actual = _field(document.data, field)
    if op == "in":
        return isinstance(expected, list) and actual in expected
    return actual == expected


class DevnetLedger:
    """Identities and documents for a single devnet.

    Accepted writes become visible to queries only after
    ``propagation_delay`` seconds, imitating eventual consistency.
    """

    def __init__(self, network: str = "testnet", propagation_delay: float = 0.0):
        self.network = network
        self.propagation_delay = propagation_delay
        self.identities: dict[str, Identity] = {}
        self.documents: dict[str, list[_StoredDocument]] = {}
        self._lock = threading.Lock()

    def register_identity(self, public_keys: list[IdentityPublicKey]) -> Identity:
        identity = Identity(id=secrets.token_urlsafe(32), public_keys=public_keys)
        with self._lock:
            self.identities[identity.id] = identity
        return identity

    def get_identity(self, identity_id: str) -> Identity:
        with self._lock:
            identity = self.identities.get(identity_id)
        if identity is None:
            msg = f"Identity {identity_id} not found"
            raise LedgerRejectedError(msg, HTTP_NOT_FOUND)
        return identity

    def query(self, locator: str, query: dict[str, Any]) -> list[Document]:
        now = time.monotonic()
        where = query.get("where", [])
        for clause in where:
            _check_clause(clause)
        with self._lock:
            stored = list(self.documents.get(locator, []))
        results = [
            entry.document
            for entry in stored
            if entry.visible_at <= now
            and all(_matches(entry.document, clause) for clause in where)
        ]

        for field, direction in reversed(query.get("orderBy", [])):
            results.sort(
                key=lambda doc, f=field: str(_field(doc.data, f)),
                reverse=direction == "desc",
            )
        start_at = int(query.get("startAt", 1))
        if start_at < 1:
            msg = "startAt is 1-based"
            raise LedgerRejectedError(msg)
        results = results[start_at - 1 :]
        if query.get("limit") is not None:
            results = results[: int(query["limit"])]
        return results

    def broadcast(self, batch: DocumentBatch, identity_id: str) -> list[Document]:
        """Accept the create transitions of ``batch`` signed by ``identity_id``."""
        if batch.replace or batch.delete:
            msg = "Only create transitions are supported on devnet"
            raise LedgerRejectedError(msg)
        if not batch.create:
            msg = "Empty document batch"
            raise LedgerRejectedError(msg)

        with self._lock:
            if identity_id not in self.identities:
                msg = f"Identity {identity_id} not found"
                raise LedgerRejectedError(msg)
            accepted = []
            for document in batch.create:
                if document.owner_id != identity_id:
                    msg = f"Document owner {document.owner_id} does not match {identity_id}"
                    raise LedgerRejectedError(msg)
                if document.id is None:
                    document = document.model_copy(
                        update={"id": secrets.token_urlsafe(32)}
                    )
                elif self._has_document(document):
                    msg = f"Document {document.id} already exists"
                    raise LedgerRejectedError(msg, HTTP_CONFLICT)
                accepted.append(document)

            visible_at = time.monotonic() + self.propagation_delay
            for document in accepted:
                self.documents.setdefault(document.data_contract_id, []).append(
                    _StoredDocument(document, visible_at)
                )
        return accepted

    def _has_document(self, document: Document) -> bool:
        return any(
            entry.document.id == document.id
            for entry in self.documents.get(document.data_contract_id, [])
        )
