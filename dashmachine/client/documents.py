"""
Finding and submitting platform documents.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from dashmachine.common.config import Config
from dashmachine.common.exceptions import DocumentExistsError, QueryError, SubmitError
from dashmachine.common.models import Document, DocumentQuery, Identity
from dashmachine.common.retry import call_with_retries

if TYPE_CHECKING:
    from dashmachine.client.connection import DashConnection


def _query_dict(query: DocumentQuery | dict[str, Any]) -> dict[str, Any]:
    if isinstance(query, DocumentQuery):
        return query.to_dict()
    return query


class DocumentStore:
    """Find, submit and wait for documents over a ``DashConnection``."""

    def __init__(
        self,
        find_max_retries: int | None = None,
        submit_max_retries: int | None = None,
        poll_interval: float | None = None,
        retry_delay: float | None = None,
        config: Config | None = None,
    ):
        config = config or Config()
        self.find_max_retries = (
            find_max_retries if find_max_retries is not None else config.FIND_MAX_RETRIES
        )
        self.submit_max_retries = (
            submit_max_retries
            if submit_max_retries is not None
            else config.SUBMIT_MAX_RETRIES
        )
        self.poll_interval = (
            poll_interval if poll_interval is not None else config.POLL_INTERVAL
        )
        self.retry_delay = retry_delay if retry_delay is not None else config.RETRY_DELAY
        self.logger = logging.getLogger(__name__)

    def find(
        self,
        connection: DashConnection,
        locator: str,
        query: DocumentQuery | dict[str, Any],
    ) -> list[Document]:
        """Return the documents matching ``query``; an empty list if none.

        Raises:
            QueryError: the platform query failed
        """
        query_dict = _query_dict(query)
        self.logger.debug("find documents with locator %s matching %s", locator, query_dict)
        try:
            found = connection.client.query_documents(locator, query_dict)
            documents = [Document.model_validate(raw) for raw in found]
        except ValidationError as e:
            msg = f"Malformed document returned for {locator}: {e}"
            raise QueryError(msg) from e
        except Exception as e:
            self.logger.debug("ERR_DOC_FIND: %s", e)
            msg = f"Document query on {locator} failed: {e}"
            raise QueryError(msg) from e

        self.logger.debug("%s docs found", len(documents))
        return documents

    def submit(
        self,
        connection: DashConnection,
        document: Document,
        dedupe_query: DocumentQuery | dict[str, Any] | None = None,
    ) -> Document:
        """Create and broadcast ``document`` as its owner identity.

        The whole resolve, create and broadcast sequence is retried on any
        failure. The document is created once and every attempt broadcasts
        the same document id, so a broadcast that landed but lost its
        response is answered with "already exists" on retry and counted as
        a success. ``dedupe_query`` (matching only this document) lets
        retries also pick up an earlier write that is already visible.

        Returns:
            The network-confirmed document

        Raises:
            SubmitError: every attempt failed
        """
        self.logger.debug(
            "Assemble document for contract %s owned by %s",
            document.data_contract_id,
            document.owner_id,
        )

        prepared: dict[str, Any] = {}

        def attempt(number: int) -> Document:
            if number > 1 and dedupe_query is not None:
                existing = self._find_prior_write(connection, document, dedupe_query)
                if existing is not None:
                    return existing
            return self._submit_once(connection, document, prepared)

        try:
            submitted = call_with_retries(
                attempt,
                max_attempts=self.submit_max_retries,
                retry_on=(Exception,),
                description="document submit",
                retry_delay=self.retry_delay,
            )
        except SubmitError:
            raise
        except Exception as e:
            msg = (
                f"Unable to submit document after {self.submit_max_retries} "
                f"attempts: {e}"
            )
            raise SubmitError(msg) from e

        self.logger.info("Document %s successfully submitted", submitted.id)
        return submitted

    def _submit_once(
        self,
        connection: DashConnection,
        document: Document,
        prepared: dict[str, Any],
    ) -> Document:
        client = connection.client
        raw_identity = client.get_identity(document.owner_id)
        if raw_identity is None:
            msg = f"Owner identity {document.owner_id} not found"
            raise SubmitError(msg)
        identity = Identity.model_validate(raw_identity)

        if "created" not in prepared:
            prepared["created"] = client.create_document(
                document.data_contract_id, identity.to_wire(), dict(document.data)
            )
            self.logger.debug(
                "document prepared for submission: %s", prepared["created"].get("id")
            )
        created = prepared["created"]
        batch = {"create": [created], "replace": [], "delete": []}

        try:
            confirmed = client.broadcast_documents(batch, identity.to_wire())
        except DocumentExistsError as e:
            # An earlier attempt with this id landed
            self.logger.info("Document %s already on the network", e.document_id)
            return Document.model_validate(created)
        if not confirmed:
            msg = "Broadcast returned no confirmed documents"
            raise SubmitError(msg)
        return Document.model_validate(confirmed[0])

    def _find_prior_write(
        self,
        connection: DashConnection,
        document: Document,
        dedupe_query: DocumentQuery | dict[str, Any],
    ) -> Document | None:
        for existing in self.find(connection, document.data_contract_id, dedupe_query):
            if existing.owner_id == document.owner_id:
                self.logger.info(
                    "Document already on the network as %s, not resubmitting",
                    existing.id,
                )
                return existing
        return None

    def wait_for(
        self,
        connection: DashConnection,
        locator: str,
        query: DocumentQuery | dict[str, Any],
        timeout: float,
        poll_interval: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> list[Document]:
        """Poll ``find`` until documents appear or ``timeout`` seconds pass.

        Outcomes:
            * non-empty list: documents found
            * empty list: nothing visible before the deadline, or
              ``cancel_event`` was set
            * ``QueryError``: a poll kept failing after its own retries

        Args:
            connection: Connected platform session
            locator: Document locator, e.g. ``app.documentType``
            query: Query parameters
            timeout: Seconds until giving up
            poll_interval: Seconds between polls
            cancel_event: Set it to stop waiting early
        """
        interval = self.poll_interval if poll_interval is None else poll_interval
        cancel = cancel_event or threading.Event()
        started = time.monotonic()
        deadline = started + timeout
        polls = 0
        self.logger.debug(
            "Polling for %ss every %ss for documents with locator %s",
            timeout,
            interval,
            locator,
        )

        while not cancel.is_set():
            polls += 1
            found = call_with_retries(
                lambda _attempt: self.find(connection, locator, query),
                max_attempts=self.find_max_retries,
                retry_on=(QueryError,),
                description="document find",
                retry_delay=self.retry_delay,
            )
            if found:
                self.logger.debug(
                    "Got a successful result after %s polls and %.3fs",
                    polls,
                    time.monotonic() - started,
                )
                return found

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            cancel.wait(min(interval, remaining))

        if cancel.is_set():
            self.logger.info("wait_for on %s cancelled after %s polls", locator, polls)
        else:
            self.logger.info(
                "wait_for didn't find any documents on %s within %ss", locator, timeout
            )
        return []
