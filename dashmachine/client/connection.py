"""
Connection to the platform network.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from dashmachine.common.config import Config
from dashmachine.common.exceptions import PlatformConnectionError
from dashmachine.common.models import ConnectionParams

if TYPE_CHECKING:
    from types import TracebackType

    from dashmachine.common.interfaces import ClientFactory, IPlatformClient

logger = logging.getLogger(__name__)


def _default_client_factory(params: ConnectionParams) -> IPlatformClient:
    from dashmachine.client.infrastructure.gateway_client import (  # noqa: PLC0415
        GatewayPlatformClient,
    )

    return GatewayPlatformClient(params)


class DashConnection:
    """A session to the platform, owned by a single logical operation.

    Instances are not thread-safe: the retry counter and client handle are
    private state of the operation that created the connection.
    """

    def __init__(
        self,
        network: str | None = None,
        mnemonic: str | None = None,
        apps: dict[str, dict[str, str]] | None = None,
        seeds: list[str] | None = None,
        max_retries: int | None = None,
        client_factory: ClientFactory | None = None,
        config: Config | None = None,
    ):
        config = config or Config()
        self._params = ConnectionParams(
            network=network or config.NETWORK,
            mnemonic=mnemonic,
            apps=apps or {},
            seeds=seeds if seeds is not None else list(config.SEEDS),
        )
        self._client_factory = client_factory or _default_client_factory
        self._client: IPlatformClient | None = None
        self.connect_tries: int = 0
        self.max_retries: int = (
            max_retries if max_retries is not None else config.CONNECT_MAX_RETRIES
        )
        if self.max_retries < 1:
            msg = f"max_retries must be at least 1, got {self.max_retries}"
            raise ValueError(msg)
        logger.debug(
            "Created connection for network %s with apps %s",
            self._params.network,
            sorted(self._params.apps),
        )

    @property
    def network(self) -> str:
        return self._params.network

    @property
    def apps(self) -> dict[str, dict[str, str]]:
        return self._params.apps

    @property
    def seeds(self) -> list[str]:
        return self._params.seeds

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    @property
    def client(self) -> IPlatformClient:
        """The live platform client."""
        if self._client is None:
            msg = "Connection is not established, call connect() first"
            raise PlatformConnectionError(msg)
        return self._client

    def conn_params(self) -> ConnectionParams:
        return self._params

    def connect(self) -> None:
        """Establish a session, retrying up to ``max_retries`` attempts.

        Raises:
            PlatformConnectionError: every attempt failed; chained from the
                last underlying error
        """
        last_error: Exception | None = None
        for attempt in range(1, self.max_retries + 1):
            self.connect_tries = attempt
            logger.debug(
                "Connecting to %s, attempt %s/%s",
                self._params.network,
                self.connect_tries,
                self.max_retries,
            )
            client: IPlatformClient | None = None
            try:
                client = self._client_factory(self._params)
                client.connect()
                if not client.is_ready():
                    msg = "Platform client reported not ready"
                    raise PlatformConnectionError(msg)
            except Exception as e:
                last_error = e
                logger.warning("ERR_CONNECTION on attempt %s: %s", self.connect_tries, e)
                if client is not None:
                    self._close_quietly(client)
                continue

            logger.info(
                "Connected to %s after %s attempt(s)",
                self._params.network,
                self.connect_tries,
            )
            self._client = client
            self.connect_tries = 0
            return

        logger.error("Unable to connect after %s attempts", self.connect_tries)
        msg = (
            f"Unable to connect to {self._params.network} "
            f"after {self.connect_tries} attempts: {last_error}"
        )
        raise PlatformConnectionError(msg) from last_error

    def disconnect(self) -> Exception | None:
        """Close the session.

        Returns:
            The disconnect error, if any. Disconnect failures are reported,
            never raised.
        """
        if self._client is None:
            return None
        client, self._client = self._client, None
        try:
            client.disconnect()
        except Exception as e:
            logger.warning("Disconnect error: %s", e)
            return e
        logger.debug("Successfully disconnected")
        return None

    @staticmethod
    def _close_quietly(client: IPlatformClient) -> None:
        try:
            client.disconnect()
        except Exception as e:  # noqa: BLE001
            logger.debug("Ignoring disconnect error after failed connect: %s", e)

    def __enter__(self) -> DashConnection:
        self.connect()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.disconnect()

    def __repr__(self) -> str:
        return (
            f"DashConnection(network={self._params.network!r}, "
            f"seeds={self._params.seeds!r}, connected={self.is_connected})"
        )
