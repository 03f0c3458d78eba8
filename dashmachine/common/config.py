"""
Configuration settings for dashmachine.
"""

from __future__ import annotations

import logging
import os


class Config:
    """Central configuration class for all system settings."""

    def __init__(self) -> None:
        # Network settings
        self.NETWORK: str = os.getenv("DASHMACHINE_NETWORK", "testnet")
        self.SEEDS: list[str] = [
            seed.strip()
            for seed in os.getenv("DASHMACHINE_SEEDS", "127.0.0.1:8000").split(",")
            if seed.strip()
        ]
        self.REQUEST_TIMEOUT: int = 10  # Seconds per gateway request

        # Retry settings
        self.CONNECT_MAX_RETRIES: int = 3
        self.FIND_MAX_RETRIES: int = 3  # Per poll inside wait_for
        self.SUBMIT_MAX_RETRIES: int = 3
        self.RETRY_DELAY: float = 0.0  # No backoff between attempts

        # Eventual consistency polling
        self.WAIT_TIMEOUT: float = 10.0
        self.POLL_INTERVAL: float = 0.1

        # Name service
        self.NAMING_APP: str = "dpnsContract"
        self.NAME_DOCUMENT_TYPE: str = "domain"
        self.NAME_PARENT_DOMAIN: str = "dash"
        self.NAME_LOCATOR: str = f"{self.NAMING_APP}.{self.NAME_DOCUMENT_TYPE}"

        # Account key used for message encryption
        self.IDENTITY_KEY_PATH: str = "m/9'/5'/0'/0'/0'"

        # Devnet gateway
        self.DEVNET_HOST: str = os.getenv("DASHMACHINE_DEVNET_HOST", "127.0.0.1")
        self.DEVNET_PORT: int = int(os.getenv("DASHMACHINE_DEVNET_PORT", "8000"))
        self.DEVNET_PROPAGATION_DELAY: float = float(
            os.getenv("DASHMACHINE_DEVNET_PROPAGATION_DELAY", "0")
        )

        # Logging
        level = logging.getLevelName(os.getenv("DASHMACHINE_LOG_LEVEL", "INFO").upper())
        self.LOG_LEVEL: int = level if isinstance(level, int) else logging.INFO
