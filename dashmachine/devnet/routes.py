"""
Routes for the devnet gateway.
"""

from __future__ import annotations

import time
from typing import Any

from fastapi import FastAPI, HTTPException

from dashmachine.common.exceptions import LedgerRejectedError
from dashmachine.common.models import (
    BroadcastRequest,
    DocumentsResponse,
    QueryDocumentsRequest,
    RegisterIdentityRequest,
)
from dashmachine.devnet.ledger import DevnetLedger


class DevnetRoutes:
    """Handles FastAPI routes for the devnet gateway."""

    def __init__(self, ledger: DevnetLedger):
        self.ledger = ledger

    def setup_routes(self, app: FastAPI) -> None:
        """Setup API routes on the FastAPI app."""

        app.get("/health")(self.health)
        app.post("/identities")(self.register_identity)
        app.get("/identities/{identity_id}")(self.get_identity)
        app.post("/documents/query")(self.query_documents)
        app.post("/documents/broadcast")(self.broadcast_documents)

    async def health(self) -> dict[str, Any]:
        """Handle /health endpoint."""
        return {
            "status": "ok",
            "network": self.ledger.network,
            "timestamp": int(time.time()),
        }

    async def register_identity(self, req: RegisterIdentityRequest) -> dict[str, Any]:
        """Handle POST /identities endpoint."""
        identity = self.ledger.register_identity(req.public_keys)
        return identity.to_wire()

    async def get_identity(self, identity_id: str) -> dict[str, Any]:
        """Handle GET /identities/{identity_id} endpoint."""
        try:
            return self.ledger.get_identity(identity_id).to_wire()
        except LedgerRejectedError as e:
            raise HTTPException(e.status_code, str(e)) from e

    async def query_documents(self, req: QueryDocumentsRequest) -> DocumentsResponse:
        """Handle /documents/query endpoint."""
        try:
            found = self.ledger.query(req.locator, req.query)
        except LedgerRejectedError as e:
            raise HTTPException(e.status_code, str(e)) from e
        return DocumentsResponse(documents=[doc.to_wire() for doc in found])

    async def broadcast_documents(self, req: BroadcastRequest) -> DocumentsResponse:
        """Handle /documents/broadcast endpoint."""
        try:
            accepted = self.ledger.broadcast(req.batch, req.identity_id)
        except LedgerRejectedError as e:
            raise HTTPException(e.status_code, str(e)) from e
        return DocumentsResponse(documents=[doc.to_wire() for doc in accepted])
