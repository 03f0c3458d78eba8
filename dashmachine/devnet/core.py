"""
Devnet gateway server using FastAPI.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from dashmachine.common import setup_logger
from dashmachine.common.config import Config

from .ledger import DevnetLedger
from .routes import DevnetRoutes


class DevnetServer:
    """Local gateway serving an in-memory ledger over HTTP JSON."""

    def __init__(
        self,
        config: Config | None = None,
        network: str | None = None,
        propagation_delay: float | None = None,
        server_host: str | None = None,
        server_port: int | None = None,
        log_level: int | None = None,
    ):
        self.config = config or Config()
        self.logger = logging.getLogger(__name__)
        setup_logger(
            self.logger, log_level if log_level is not None else self.config.LOG_LEVEL
        )

        self.server_host = server_host or self.config.DEVNET_HOST
        self.server_port = server_port or self.config.DEVNET_PORT
        self.ledger = DevnetLedger(
            network=network or self.config.NETWORK,
            propagation_delay=(
                propagation_delay
                if propagation_delay is not None
                else self.config.DEVNET_PROPAGATION_DELAY
            ),
        )

        self.app = FastAPI(title="dashmachine devnet")
        DevnetRoutes(self.ledger).setup_routes(self.app)

        self.logger.info(
            "Devnet %s configured on http://%s:%s (propagation delay %ss)",
            self.ledger.network,
            self.server_host,
            self.server_port,
            self.ledger.propagation_delay,
        )
        self.logger.info(
            "Clients must set seeds=['%s:%s'] to connect",
            self.server_host,
            self.server_port,
        )
