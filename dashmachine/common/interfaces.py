"""
Interfaces and protocols for dependency injection.
"""

from __future__ import annotations

from typing import Any, Callable, Protocol

from dashmachine.common.models import ConnectionParams


class IPlatformClient(Protocol):
    """Protocol for the platform network client.

    Records cross this boundary in wire format (plain dicts with camelCase
    keys); validation into models happens on the dashmachine side.
    ``broadcast_documents`` raises ``DocumentExistsError`` when a document
    id in the batch is already on the network.
    """

    def connect(self) -> None: ...

    def disconnect(self) -> None: ...

    def is_ready(self) -> bool: ...

    def get_identity(self, identity_id: str) -> dict[str, Any] | None: ...

    def query_documents(
        self, locator: str, query: dict[str, Any]
    ) -> list[dict[str, Any]]: ...

    def create_document(
        self, locator: str, identity: dict[str, Any], data: dict[str, Any]
    ) -> dict[str, Any]: ...

    def broadcast_documents(
        self, batch: dict[str, list[dict[str, Any]]], identity: dict[str, Any]
    ) -> list[dict[str, Any]]: ...

    def get_account_signing_key(self, path: str) -> str: ...


ClientFactory = Callable[[ConnectionParams], IPlatformClient]
