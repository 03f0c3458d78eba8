"""
Encrypted messaging between registered usernames.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from dashmachine.client.connection import DashConnection
from dashmachine.client.names import NameResolver
from dashmachine.common import setup_logger
from dashmachine.common.config import Config
from dashmachine.common.crypto import DashmachineCrypto
from dashmachine.common.exceptions import IdentityMismatchError

if TYPE_CHECKING:
    from dashmachine.common.interfaces import ClientFactory
    from dashmachine.common.models import NameRecord


class MessagingService:
    """Encrypts and decrypts messages addressed by username.

    Every call opens its own ``DashConnection`` and closes it before
    returning, so one service can be used from several threads.
    """

    def __init__(
        self,
        network: str | None = None,
        seeds: list[str] | None = None,
        client_factory: ClientFactory | None = None,
        resolver: NameResolver | None = None,
        log_level: int | None = None,
        config: Config | None = None,
    ):
        self.config = config or Config()
        self.network = network or self.config.NETWORK
        self.seeds = seeds if seeds is not None else list(self.config.SEEDS)
        self.client_factory = client_factory
        self.resolver = resolver or NameResolver(config=self.config)

        self.logger = logging.getLogger(__name__)
        setup_logger(
            self.logger, log_level if log_level is not None else self.config.LOG_LEVEL
        )

    def _open(self, account_seed: str, naming_contract_id: str) -> DashConnection:
        return DashConnection(
            network=self.network,
            mnemonic=account_seed,
            apps={self.config.NAMING_APP: {"contractId": naming_contract_id}},
            seeds=self.seeds,
            client_factory=self.client_factory,
            config=self.config,
        )

    def _resolve_own_account(self, username: str, connection: DashConnection) -> NameRecord:
        """Resolve ``username`` and attach the connected account's private key."""
        record = self.resolver.require_user(username, connection)
        private_key = connection.client.get_account_signing_key(
            self.config.IDENTITY_KEY_PATH
        )
        if DashmachineCrypto.public_key_from_private(private_key) != record.public_key:
            msg = f"Connected account does not own the identity registered for {username!r}"
            raise IdentityMismatchError(msg)
        return record.model_copy(update={"private_key": private_key})

    def encrypt_for_username(
        self,
        message: str,
        sender_username: str,
        recipient_username: str,
        sender_account_seed: str,
        naming_contract_id: str,
    ) -> str:
        """Encrypt ``message`` from one registered username to another.

        Returns:
            base64 encrypted payload

        Raises:
            NameNotFoundError: either username is not registered
            IdentityMismatchError: the seed does not belong to the sender
            CryptoError: the registered key material is unusable
        """
        self.logger.info("Encrypting message from %s to %s", sender_username, recipient_username)
        with self._open(sender_account_seed, naming_contract_id) as connection:
            sender = self._resolve_own_account(sender_username, connection)
            recipient = self.resolver.require_user(recipient_username, connection)
            assert sender.private_key is not None
            return DashmachineCrypto.encrypt(sender.private_key, message, recipient.public_key)

    def decrypt_for_username(
        self,
        payload: str,
        recipient_username: str,
        sender_username: str,
        recipient_account_seed: str,
        naming_contract_id: str,
    ) -> str:
        """Decrypt a payload sent to ``recipient_username``.

        Raises:
            NameNotFoundError: either username is not registered
            IdentityMismatchError: the seed does not belong to the recipient
            CryptoError: the payload was not sent by ``sender_username``
        """
        self.logger.info(
            "Decrypting message from %s for %s", sender_username, recipient_username
        )
        with self._open(recipient_account_seed, naming_contract_id) as connection:
            recipient = self._resolve_own_account(recipient_username, connection)
            sender = self.resolver.require_user(sender_username, connection)
            assert recipient.private_key is not None
            return DashmachineCrypto.decrypt(recipient.private_key, payload, sender.public_key)
