"""
Command-line interface for dashmachine.
"""

from __future__ import annotations

import logging
import os
import sys

import click
import requests

from dashmachine.client.connection import DashConnection
from dashmachine.client.infrastructure.gateway_client import GatewayPlatformClient
from dashmachine.client.messaging import MessagingService
from dashmachine.client.names import NameResolver
from dashmachine.common import setup_logger
from dashmachine.common.config import Config
from dashmachine.common.crypto import DashmachineCrypto
from dashmachine.common.exceptions import DashmachineError

seed_option = click.option(
    "--seed-node",
    "seed_nodes",
    multiple=True,
    help="Gateway endpoint, repeatable (default: from DASHMACHINE_SEEDS)",
)
network_option = click.option(
    "--network",
    default=None,
    help="Network name (default: from DASHMACHINE_NETWORK or testnet)",
)
naming_contract_option = click.option(
    "--naming-contract",
    required=True,
    help="Contract id of the name service",
)


@click.group()
@click.option("--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:  # noqa: FBT001
    """dashmachine encrypted messaging CLI"""
    config = Config()
    setup_logger(None, logging.DEBUG if verbose else config.LOG_LEVEL)


@cli.command()
def keygen() -> None:
    """Generate a secp256k1 key pair (base64)"""
    private_key, public_key = DashmachineCrypto.generate_keypair()
    click.echo(f"private: {private_key}")
    click.echo(f"public: {public_key}")


@cli.command(name="hash")
@click.argument("message")
def hash_message(message: str) -> None:
    """Double SHA256 hash a message"""
    click.echo(DashmachineCrypto.hash(message))


@cli.command()
@click.argument("message")
@click.argument("digest")
def verify(message: str, digest: str) -> None:
    """Check a message against a double SHA256 digest"""
    if DashmachineCrypto.verify(message, digest):
        click.echo("valid")
        return
    click.echo("invalid")
    sys.exit(1)


@cli.command()
def entropy() -> None:
    """Print a fresh random public identifier"""
    click.echo(DashmachineCrypto.generate_entropy())


@cli.command()
@click.option("--sender-key", required=True, help="Sender private key (base64)")
@click.option("--recipient-pub", required=True, help="Recipient public key (base64)")
@click.argument("message")
def encrypt(sender_key: str, recipient_pub: str, message: str) -> None:
    """Encrypt a message with raw keys"""
    try:
        click.echo(DashmachineCrypto.encrypt(sender_key, message, recipient_pub))
    except DashmachineError as e:
        raise click.ClickException(str(e)) from e


@cli.command()
@click.option("--recipient-key", required=True, help="Recipient private key (base64)")
@click.option("--sender-pub", required=True, help="Sender public key (base64)")
@click.argument("payload")
def decrypt(recipient_key: str, sender_pub: str, payload: str) -> None:
    """Decrypt a payload with raw keys"""
    try:
        click.echo(DashmachineCrypto.decrypt(recipient_key, payload, sender_pub))
    except DashmachineError as e:
        raise click.ClickException(str(e)) from e


@cli.command()
@click.option("--from", "sender", required=True, help="Sender username")
@click.option("--to", "recipient", required=True, help="Recipient username")
@click.option("--mnemonic", envvar="DASHMACHINE_MNEMONIC", required=True, help="Sender account seed")
@naming_contract_option
@network_option
@seed_option
@click.argument("message")
def send(  # noqa: PLR0913
    sender: str,
    recipient: str,
    mnemonic: str,
    naming_contract: str,
    network: str | None,
    seed_nodes: tuple[str, ...],
    message: str,
) -> None:
    """Encrypt a message from one username to another"""
    service = MessagingService(network=network, seeds=list(seed_nodes) or None)
    try:
        payload = service.encrypt_for_username(
            message, sender, recipient, mnemonic, naming_contract
        )
    except DashmachineError as e:
        raise click.ClickException(str(e)) from e
    click.echo(payload)


@cli.command()
@click.option("--from", "sender", required=True, help="Sender username")
@click.option("--to", "recipient", required=True, help="Recipient username")
@click.option("--mnemonic", envvar="DASHMACHINE_MNEMONIC", required=True, help="Recipient account seed")
@naming_contract_option
@network_option
@seed_option
@click.argument("payload")
def receive(  # noqa: PLR0913
    sender: str,
    recipient: str,
    mnemonic: str,
    naming_contract: str,
    network: str | None,
    seed_nodes: tuple[str, ...],
    payload: str,
) -> None:
    """Decrypt a message sent to a username"""
    service = MessagingService(network=network, seeds=list(seed_nodes) or None)
    try:
        message = service.decrypt_for_username(
            payload, recipient, sender, mnemonic, naming_contract
        )
    except DashmachineError as e:
        raise click.ClickException(str(e)) from e
    click.echo(message)


@cli.command()
@click.option("--mnemonic", envvar="DASHMACHINE_MNEMONIC", required=True, help="Account seed")
@naming_contract_option
@network_option
@seed_option
@click.option("--timeout", default=None, type=float, help="Seconds to wait for the name")
@click.argument("username")
def register(  # noqa: PLR0913
    mnemonic: str,
    naming_contract: str,
    network: str | None,
    seed_nodes: tuple[str, ...],
    timeout: float | None,
    username: str,
) -> None:
    """Register an identity and username on a devnet gateway"""
    config = Config()
    private_key = DashmachineCrypto.derive_key_from_seed(mnemonic, config.IDENTITY_KEY_PATH)
    public_key = DashmachineCrypto.public_key_from_private(private_key)
    connection = DashConnection(
        network=network,
        mnemonic=mnemonic,
        apps={config.NAMING_APP: {"contractId": naming_contract}},
        seeds=list(seed_nodes) or None,
        config=config,
    )
    try:
        with connection:
            gateway = connection.client
            if not isinstance(gateway, GatewayPlatformClient):
                msg = "Registration needs a gateway connection"
                raise click.ClickException(msg)
            identity = gateway.register_identity([{"id": 0, "type": 0, "data": public_key}])
            record = NameResolver(config=config).register_user(
                username, identity["id"], connection, timeout
            )
    except (DashmachineError, requests.RequestException) as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Registered {record.name} as identity {record.identity_id}")


@cli.command()
@click.option("--host", default=None, help="Host to bind (default: from DASHMACHINE_DEVNET_HOST or 127.0.0.1)")
@click.option("--port", default=None, type=int, help="Port to bind (default: from DASHMACHINE_DEVNET_PORT or 8000)")
@click.option("--propagation-delay", default=None, type=float, help="Seconds before writes become visible")
def devnet(host: str | None, port: int | None, propagation_delay: float | None) -> None:
    """Start the in-memory devnet gateway"""
    # Set environment variables before building the config
    if host:
        os.environ["DASHMACHINE_DEVNET_HOST"] = host
    if port:
        os.environ["DASHMACHINE_DEVNET_PORT"] = str(port)

    from dashmachine.devnet import start_server  # noqa: PLC0415

    start_server(Config(), propagation_delay=propagation_delay)


if __name__ == "__main__":
    cli()
