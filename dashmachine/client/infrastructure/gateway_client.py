"""Infrastructure layer: HTTP JSON platform gateway client.
"""

from __future__ import annotations

import logging
import secrets
from typing import TYPE_CHECKING, Any

import requests

from dashmachine.common.config import Config
from dashmachine.common.crypto import DashmachineCrypto
from dashmachine.common.exceptions import DocumentExistsError, PlatformConnectionError

if TYPE_CHECKING:
    from dashmachine.common.models import ConnectionParams

HTTP_NOT_FOUND = 404
HTTP_CONFLICT = 409

logger = logging.getLogger(__name__)


class GatewayPlatformClient:
    """Platform client speaking JSON over HTTP to a gateway node.

    The first seed is the gateway address. Application locators
    (``app.documentType``) are resolved to ``<contractId>.documentType``
    through the connection's app bindings before going on the wire.
    """

    def __init__(
        self,
        params: ConnectionParams,
        session: Any | None = None,
        timeout: int | None = None,
    ):
        if not params.seeds:
            msg = "At least one seed endpoint is required"
            raise PlatformConnectionError(msg)
        seed = params.seeds[0].rstrip("/")
        self.base_url = seed if "://" in seed else f"http://{seed}"
        self.params = params
        self.timeout = timeout if timeout is not None else Config().REQUEST_TIMEOUT
        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()
        self._ready = False

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def resolve_locator(self, locator: str) -> str:
        app, sep, document_type = locator.partition(".")
        binding = self.params.apps.get(app)
        if not sep or binding is None or "contractId" not in binding:
            return locator
        return f"{binding['contractId']}.{document_type}"

    def connect(self) -> None:
        r = self.session.get(self._url("/health"), timeout=self.timeout)
        r.raise_for_status()
        status = r.json()
        network = status.get("network")
        if network and network != self.params.network:
            msg = f"Gateway serves {network}, expected {self.params.network}"
            raise PlatformConnectionError(msg)
        self._ready = status.get("status") == "ok"
        logger.debug("Gateway %s ready: %s", self.base_url, self._ready)

    def disconnect(self) -> None:
        self._ready = False
        if self._owns_session:
            self.session.close()

    def is_ready(self) -> bool:
        return self._ready

    def get_identity(self, identity_id: str) -> dict[str, Any] | None:
        r = self.session.get(self._url(f"/identities/{identity_id}"), timeout=self.timeout)
        if r.status_code == HTTP_NOT_FOUND:
            return None
        r.raise_for_status()
        return r.json()

    def register_identity(self, public_keys: list[dict[str, Any]]) -> dict[str, Any]:
        """Create an identity holding ``public_keys`` (devnet gateways only)."""
        r = self.session.post(
            self._url("/identities"),
            json={"publicKeys": public_keys},
            timeout=self.timeout,
        )
        r.raise_for_status()
        return r.json()

    def query_documents(
        self, locator: str, query: dict[str, Any]
    ) -> list[dict[str, Any]]:
        r = self.session.post(
            self._url("/documents/query"),
            json={"locator": self.resolve_locator(locator), "query": query},
            timeout=self.timeout,
        )
        r.raise_for_status()
        return r.json()["documents"]

    def create_document(
        self, locator: str, identity: dict[str, Any], data: dict[str, Any]
    ) -> dict[str, Any]:
        return {
            "id": secrets.token_urlsafe(32),
            "dataContractId": self.resolve_locator(locator),
            "ownerId": identity["id"],
            "data": data,
        }

    def broadcast_documents(
        self, batch: dict[str, list[dict[str, Any]]], identity: dict[str, Any]
    ) -> list[dict[str, Any]]:
        r = self.session.post(
            self._url("/documents/broadcast"),
            json={"batch": batch, "identityId": identity["id"]},
            timeout=self.timeout,
        )
        if r.status_code == HTTP_CONFLICT:
            raise DocumentExistsError(", ".join(doc.get("id") or "" for doc in batch["create"]))
        r.raise_for_status()
        return r.json()["documents"]

    def get_account_signing_key(self, path: str) -> str:
        if not self.params.mnemonic:
            msg = "Connection has no account mnemonic"
            raise PlatformConnectionError(msg)
        return DashmachineCrypto.derive_key_from_seed(self.params.mnemonic, path)
