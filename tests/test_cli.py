import requests
from click.testing import CliRunner

from dashmachine.cli import cli
from dashmachine.client.infrastructure.gateway_client import GatewayPlatformClient
from dashmachine.common.crypto import DashmachineCrypto


def test_cli_help():
    """Test CLI help command."""
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "Usage:" in result.output
    for command in ("keygen", "hash", "verify", "encrypt", "decrypt", "send", "receive", "devnet"):
        assert command in result.output


def test_cli_keygen():
    """Test keygen command."""
    runner = CliRunner()
    result = runner.invoke(cli, ["keygen"])
    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert lines[0].startswith("private: ")
    assert lines[1].startswith("public: ")
    private_key = lines[0].removeprefix("private: ")
    assert DashmachineCrypto.public_key_from_private(private_key) == lines[1].removeprefix("public: ")


def test_cli_hash_and_verify():
    runner = CliRunner()
    result = runner.invoke(cli, ["hash", "hello"])
    assert result.exit_code == 0
    digest = result.output.strip()
    assert digest == DashmachineCrypto.hash("hello")

    result = runner.invoke(cli, ["verify", "hello", digest])
    assert result.exit_code == 0
    assert "valid" in result.output

    result = runner.invoke(cli, ["verify", "goodbye", digest])
    assert result.exit_code == 1
    assert "invalid" in result.output


def test_cli_entropy():
    runner = CliRunner()
    first = runner.invoke(cli, ["entropy"]).output.strip()
    second = runner.invoke(cli, ["entropy"]).output.strip()
    assert first
    assert first != second


def test_cli_encrypt_decrypt():
    alice_private, alice_public = DashmachineCrypto.generate_keypair()
    bob_private, bob_public = DashmachineCrypto.generate_keypair()
    runner = CliRunner()

    result = runner.invoke(
        cli, ["encrypt", "--sender-key", alice_private, "--recipient-pub", bob_public, "hi bob"]
    )
    assert result.exit_code == 0
    payload = result.output.strip()

    result = runner.invoke(
        cli, ["decrypt", "--recipient-key", bob_private, "--sender-pub", alice_public, payload]
    )
    assert result.exit_code == 0
    assert result.output.strip() == "hi bob"


def test_cli_decrypt_bad_payload():
    bob_private, _ = DashmachineCrypto.generate_keypair()
    _, alice_public = DashmachineCrypto.generate_keypair()
    runner = CliRunner()
    result = runner.invoke(
        cli, ["decrypt", "--recipient-key", bob_private, "--sender-pub", alice_public, "garbage!"]
    )
    assert result.exit_code == 1
    assert "Error" in result.output


def test_cli_send_help():
    runner = CliRunner()
    result = runner.invoke(cli, ["send", "--help"])
    assert result.exit_code == 0
    assert "--naming-contract" in result.output
    assert "--seed-node" in result.output


def test_cli_devnet_help():
    runner = CliRunner()
    result = runner.invoke(cli, ["devnet", "--help"])
    assert result.exit_code == 0
    assert "Start the in-memory devnet gateway" in result.output


def test_cli_register_gateway_error(monkeypatch):
    """Transport errors during registration are reported, not raised."""

    def ready(self):
        self._ready = True

    def refuse(self, public_keys):
        msg = "connection reset by peer"
        raise requests.ConnectionError(msg)

    monkeypatch.setattr(GatewayPlatformClient, "connect", ready)
    monkeypatch.setattr(GatewayPlatformClient, "register_identity", refuse)

    runner = CliRunner()
    result = runner.invoke(
        cli,
        [
            "register",
            "--mnemonic", "alice seed",
            "--naming-contract", "dpns-contract",
            "--seed-node", "127.0.0.1:1",
            "alice",
        ],
    )
    assert result.exit_code == 1
    assert "connection reset by peer" in result.output
    assert isinstance(result.exception, SystemExit)
