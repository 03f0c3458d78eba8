"""
Custom exceptions for dashmachine.
"""

from __future__ import annotations


class DashmachineError(Exception):
    """Base class for all dashmachine errors."""


class PlatformConnectionError(DashmachineError):
    """Session to the platform could not be established or is not open."""


class QueryError(DashmachineError):
    """Document or identity lookup failed. An empty result is not an error."""


class SubmitError(DashmachineError):
    """Document could not be written to the platform."""


class DocumentExistsError(SubmitError):
    """The platform already holds a document with this id."""

    def __init__(self, document_id: str) -> None:
        super().__init__(f"Document {document_id} already exists")
        self.document_id = document_id


class NameNotFoundError(DashmachineError):
    """No name registration matches the username."""

    def __init__(self, username: str) -> None:
        super().__init__(f"Name not found: {username}")
        self.username = username


class AmbiguousNameError(DashmachineError):
    """More than one name registration matches the username."""

    def __init__(self, username: str, count: int) -> None:
        super().__init__(f"More than one name record found for {username!r} ({count})")
        self.username = username
        self.count = count


class CryptoError(DashmachineError):
    """Malformed key material or ciphertext."""


class IdentityMismatchError(DashmachineError):
    """Account signing key does not belong to the username's identity."""


class LedgerRejectedError(DashmachineError):
    """Exception for writes or lookups rejected by the devnet ledger."""

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code
