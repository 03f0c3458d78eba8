"""
Resolution of registered usernames to identities and keys.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from dashmachine.client.documents import DocumentStore
from dashmachine.common.config import Config
from dashmachine.common.exceptions import (
    AmbiguousNameError,
    NameNotFoundError,
    QueryError,
)
from dashmachine.common.logging_utils import key_hint
from dashmachine.common.models import Document, DocumentQuery, Identity, NameRecord
from dashmachine.common.retry import call_with_retries

if TYPE_CHECKING:
    from dashmachine.client.connection import DashConnection

logger = logging.getLogger(__name__)


class NameResolver:
    """Maps usernames to identities through the name service documents."""

    def __init__(
        self,
        documents: DocumentStore | None = None,
        config: Config | None = None,
    ):
        self.config = config or Config()
        self.documents = documents or DocumentStore(config=self.config)
        self.locator = self.config.NAME_LOCATOR
        self.parent_domain = self.config.NAME_PARENT_DOMAIN

    def name_query(self, username: str) -> DocumentQuery:
        return DocumentQuery(
            where=[
                ("normalizedParentDomainName", "==", self.parent_domain),
                ("normalizedLabel", "==", username.lower()),
            ],
            start_at=1,
        )

    def resolve_user(self, username: str, connection: DashConnection) -> NameRecord | None:
        """Find the registered username on the network.

        Returns:
            The resolved record, or None when the name is not registered

        Raises:
            AmbiguousNameError: more than one registration matches
            QueryError: the lookup failed or the registration is unusable
        """
        logger.debug("Searching for username: %s", username)
        query = self.name_query(username)
        found = call_with_retries(
            lambda _attempt: self.documents.find(connection, self.locator, query),
            max_attempts=self.documents.find_max_retries,
            retry_on=(QueryError,),
            description="name lookup",
            retry_delay=self.documents.retry_delay,
        )

        if len(found) == 0:
            logger.info("Name not found: %s", username)
            return None
        if len(found) != 1:
            raise AmbiguousNameError(username, len(found))

        return self._record_from_document(username, found[0], connection)

    def require_user(self, username: str, connection: DashConnection) -> NameRecord:
        """Like ``resolve_user`` but raises ``NameNotFoundError`` when absent."""
        record = self.resolve_user(username, connection)
        if record is None:
            raise NameNotFoundError(username)
        return record

    def _record_from_document(
        self, username: str, doc: Document, connection: DashConnection
    ) -> NameRecord:
        records = doc.data.get("records")
        identity_id = records.get("identityId") if isinstance(records, dict) else None
        if not identity_id or not isinstance(identity_id, str):
            msg = f"Name document {doc.id} for {username!r} has no identity record"
            raise QueryError(msg)

        logger.debug("Fetching identity record for id %s", identity_id)
        try:
            raw_identity = connection.client.get_identity(identity_id)
        except Exception as e:
            msg = f"Identity lookup for {identity_id} failed: {e}"
            raise QueryError(msg) from e
        if raw_identity is None:
            msg = f"Identity {identity_id} registered for {username!r} does not exist"
            raise QueryError(msg)
        try:
            identity = Identity.model_validate(raw_identity)
        except ValidationError as e:
            msg = f"Malformed identity {identity_id}: {e}"
            raise QueryError(msg) from e

        public_key = identity.primary_public_key
        if public_key is None:
            msg = f"Identity {identity_id} has no public keys"
            raise QueryError(msg)

        logger.debug("Resolved %s to identity %s (%s)", username, identity_id, key_hint(public_key))
        return NameRecord(
            id=doc.id,
            name=username,
            identity_id=identity_id,
            identity=identity,
            public_key=public_key,
        )

    def register_user(
        self,
        username: str,
        identity_id: str,
        connection: DashConnection,
        timeout: float | None = None,
    ) -> NameRecord:
        """Register ``username`` for an identity and wait until it resolves.

        Raises:
            SubmitError: the registration could not be written
            NameNotFoundError: the registration did not become visible in time
        """
        query = self.name_query(username)
        document = Document(
            data_contract_id=self.locator,
            owner_id=identity_id,
            data={
                "label": username,
                "normalizedLabel": username.lower(),
                "normalizedParentDomainName": self.parent_domain,
                "records": {"identityId": identity_id},
            },
        )
        self.documents.submit(connection, document, dedupe_query=query)

        visible = self.documents.wait_for(
            connection,
            self.locator,
            query,
            timeout if timeout is not None else self.config.WAIT_TIMEOUT,
        )
        if not visible:
            raise NameNotFoundError(username)
        return self.require_user(username, connection)
