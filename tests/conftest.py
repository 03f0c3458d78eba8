from __future__ import annotations

import secrets
from typing import Any

import pytest

from dashmachine.client.connection import DashConnection
from dashmachine.client.documents import DocumentStore
from dashmachine.common.config import Config
from dashmachine.common.crypto import DashmachineCrypto
from dashmachine.common.exceptions import DocumentExistsError
from dashmachine.common.models import ConnectionParams

NAME_LOCATOR = "dpnsContract.domain"


class TransportError(Exception):
    """Stand-in for a network failure raised by the platform client."""


class FakePlatform:
    """In-memory platform client with failure injection."""

    def __init__(self, account_keys: dict[str, str] | None = None) -> None:
        self.identities: dict[str, dict[str, Any]] = {}
        self.documents: dict[str, list[dict[str, Any]]] = {}
        # mnemonic -> private key
        self.account_keys = account_keys or {}
        self.mnemonic: str | None = None
        self.ready = False
        self.connect_calls = 0
        self.disconnect_calls = 0
        self.query_calls = 0
        self.broadcast_calls = 0
        self.fail_connects = 0
        self.fail_queries = 0
        self.fail_broadcasts = 0
        self.broadcast_lands_before_failure = False
        self.fail_disconnect = False

    # IPlatformClient

    def connect(self) -> None:
        self.connect_calls += 1
        if self.fail_connects:
            self.fail_connects -= 1
            msg = "connection refused"
            raise TransportError(msg)
        self.ready = True

    def disconnect(self) -> None:
        self.disconnect_calls += 1
        self.ready = False
        if self.fail_disconnect:
            msg = "socket already closed"
            raise TransportError(msg)

    def is_ready(self) -> bool:
        return self.ready

    def get_identity(self, identity_id: str) -> dict[str, Any] | None:
        return self.identities.get(identity_id)

    def query_documents(self, locator: str, query: dict[str, Any]) -> list[dict[str, Any]]:
        self.query_calls += 1
        if self.fail_queries:
            self.fail_queries -= 1
            msg = "query timed out"
            raise TransportError(msg)
        results = []
        for doc in self.documents.get(locator, []):
            if all(self._lookup(doc["data"], field) == value for field, _op, value in query.get("where", [])):
                results.append(doc)
        return results

    def create_document(
        self, locator: str, identity: dict[str, Any], data: dict[str, Any]
    ) -> dict[str, Any]:
        return {
            "id": secrets.token_hex(8),
            "dataContractId": locator,
            "ownerId": identity["id"],
            "data": data,
        }

    def broadcast_documents(
        self, batch: dict[str, list[dict[str, Any]]], identity: dict[str, Any]
    ) -> list[dict[str, Any]]:
        self.broadcast_calls += 1
        if self.fail_broadcasts:
            self.fail_broadcasts -= 1
            if self.broadcast_lands_before_failure:
                self._store(batch["create"])
            msg = "broadcast timed out"
            raise TransportError(msg)
        return self._store(batch["create"])

    def get_account_signing_key(self, path: str) -> str:
        assert self.mnemonic is not None
        return self.account_keys[self.mnemonic]

    # helpers

    @staticmethod
    def _lookup(data: dict[str, Any], path: str) -> Any:
        value: Any = data
        for part in path.split("."):
            value = value.get(part) if isinstance(value, dict) else None
        return value

    def _store(self, created: list[dict[str, Any]]) -> list[dict[str, Any]]:
        for doc in created:
            stored = self.documents.get(doc["dataContractId"], [])
            if any(existing["id"] == doc["id"] for existing in stored):
                raise DocumentExistsError(doc["id"])
        for doc in created:
            self.documents.setdefault(doc["dataContractId"], []).append(doc)
        return created

    def add_identity(self, public_key: str) -> str:
        identity_id = secrets.token_hex(16)
        self.identities[identity_id] = {
            "id": identity_id,
            "publicKeys": [{"id": 0, "type": 0, "data": public_key}],
        }
        return identity_id

    def add_name(self, username: str, identity_id: str) -> None:
        self._store(
            [
                {
                    "id": secrets.token_hex(8),
                    "dataContractId": NAME_LOCATOR,
                    "ownerId": identity_id,
                    "data": {
                        "label": username,
                        "normalizedLabel": username.lower(),
                        "normalizedParentDomainName": "dash",
                        "records": {"identityId": identity_id},
                    },
                }
            ]
        )

    def add_user(self, username: str, mnemonic: str) -> tuple[str, str, str]:
        """Register a user; return (identity id, private key, public key)."""
        private_key, public_key = DashmachineCrypto.generate_keypair()
        self.account_keys[mnemonic] = private_key
        identity_id = self.add_identity(public_key)
        self.add_name(username, identity_id)
        return identity_id, private_key, public_key


@pytest.fixture
def platform() -> FakePlatform:
    return FakePlatform()


@pytest.fixture
def client_factory(platform: FakePlatform):
    """Factory handing out the shared fake platform to every connection."""

    def factory(params: ConnectionParams) -> FakePlatform:
        platform.mnemonic = params.mnemonic
        return platform

    return factory


@pytest.fixture
def connection(client_factory) -> DashConnection:
    conn = DashConnection(seeds=["fake:1"], client_factory=client_factory)
    conn.connect()
    yield conn
    conn.disconnect()


@pytest.fixture
def config() -> Config:
    return Config()


@pytest.fixture
def store() -> DocumentStore:
    return DocumentStore(poll_interval=0.01)
