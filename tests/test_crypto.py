import base64

import pytest

from dashmachine.common.crypto import DashmachineCrypto
from dashmachine.common.exceptions import CryptoError


@pytest.fixture
def alice() -> tuple[str, str]:
    return DashmachineCrypto.generate_keypair()


@pytest.fixture
def bob() -> tuple[str, str]:
    return DashmachineCrypto.generate_keypair()


def test_keypair_encoding() -> None:
    private_key, public_key = DashmachineCrypto.generate_keypair()
    assert len(base64.b64decode(private_key)) == 32  # noqa: PLR2004
    raw_public = base64.b64decode(public_key)
    assert len(raw_public) == 33  # noqa: PLR2004
    assert raw_public[0] in (2, 3)
    assert DashmachineCrypto.public_key_from_private(private_key) == public_key


@pytest.mark.parametrize("message", ["hello", "", "zürich ☃ 東京", "x" * 10_000])
def test_encrypt_decrypt_round_trip(alice, bob, message: str) -> None:
    payload = DashmachineCrypto.encrypt(alice[0], message, bob[1])
    assert DashmachineCrypto.decrypt(bob[0], payload, alice[1]) == message


def test_encrypt_is_randomized(alice, bob) -> None:
    first = DashmachineCrypto.encrypt(alice[0], "hello", bob[1])
    second = DashmachineCrypto.encrypt(alice[0], "hello", bob[1])
    assert first != second


def test_payload_is_base64_container(alice, bob) -> None:
    payload = DashmachineCrypto.encrypt(alice[0], "hello", bob[1])
    raw = base64.b64decode(payload, validate=True)
    assert raw[:2] == b"DM"
    assert raw[2] == 1


def test_decrypt_with_wrong_recipient_key(alice, bob) -> None:
    eve_private, _ = DashmachineCrypto.generate_keypair()
    payload = DashmachineCrypto.encrypt(alice[0], "hello", bob[1])
    with pytest.raises(CryptoError):
        DashmachineCrypto.decrypt(eve_private, payload, alice[1])


def test_decrypt_with_wrong_sender_key(alice, bob) -> None:
    _, eve_public = DashmachineCrypto.generate_keypair()
    payload = DashmachineCrypto.encrypt(alice[0], "hello", bob[1])
    with pytest.raises(CryptoError):
        DashmachineCrypto.decrypt(bob[0], payload, eve_public)


def test_decrypt_tampered_payload(alice, bob) -> None:
    raw = bytearray(base64.b64decode(DashmachineCrypto.encrypt(alice[0], "hello", bob[1])))
    raw[-1] ^= 0x01
    with pytest.raises(CryptoError):
        DashmachineCrypto.decrypt(bob[0], base64.b64encode(bytes(raw)).decode(), alice[1])


@pytest.mark.parametrize(
    "payload",
    [
        "not base64!!",
        base64.b64encode(b"XX\x01").decode(),
        base64.b64encode(b"DM\x02\x10" + b"\x00" * 40).decode(),
        base64.b64encode(b"DM\x01\x10" + b"\x00" * 5).decode(),
        "",
    ],
)
def test_decrypt_malformed_payload(alice, bob, payload: str) -> None:
    with pytest.raises(CryptoError):
        DashmachineCrypto.decrypt(bob[0], payload, alice[1])


def test_hex_payload_is_rejected(alice, bob) -> None:
    payload = DashmachineCrypto.encrypt(alice[0], "hello", bob[1])
    hex_payload = base64.b64decode(payload).hex()
    with pytest.raises(CryptoError):
        DashmachineCrypto.decrypt(bob[0], hex_payload, alice[1])


@pytest.mark.parametrize(
    "private_key",
    [
        "",
        "nope",
        base64.b64encode(b"\x01" * 31).decode(),
        base64.b64encode(b"\x00" * 32).decode(),
        base64.b64encode(b"\xff" * 32).decode(),
    ],
)
def test_encrypt_malformed_private_key(bob, private_key: str) -> None:
    with pytest.raises(CryptoError):
        DashmachineCrypto.encrypt(private_key, "hello", bob[1])


def test_encrypt_malformed_public_key(alice) -> None:
    bad_point = base64.b64encode(b"\x05" + b"\x01" * 32).decode()
    with pytest.raises(CryptoError):
        DashmachineCrypto.encrypt(alice[0], "hello", bad_point)
    with pytest.raises(CryptoError):
        DashmachineCrypto.encrypt(alice[0], "hello", base64.b64encode(b"\x02" * 10).decode())


def test_hash_is_double_sha256() -> None:
    # sha256(sha256(b"hello"))
    assert (
        DashmachineCrypto.hash("hello")
        == "9595c9df90075148eb06860365df33584b75bff782a510c6cd4883a419833d50"
    )


def test_hash_deterministic() -> None:
    assert DashmachineCrypto.hash("message") == DashmachineCrypto.hash("message")
    assert DashmachineCrypto.hash("message") != DashmachineCrypto.hash("Message")


def test_verify() -> None:
    digest = DashmachineCrypto.hash("hello")
    assert DashmachineCrypto.verify("hello", digest)
    assert not DashmachineCrypto.verify("hello!", digest)
    assert not DashmachineCrypto.verify("hello", DashmachineCrypto.hash("other"))
    assert not DashmachineCrypto.verify("hello", "")


def test_generate_entropy_is_fresh_public_key() -> None:
    first = DashmachineCrypto.generate_entropy()
    second = DashmachineCrypto.generate_entropy()
    assert first != second
    assert len(base64.b64decode(first)) == 33  # noqa: PLR2004


def test_derive_key_from_seed_is_deterministic() -> None:
    path = "m/9'/5'/0'/0'/0'"
    first = DashmachineCrypto.derive_key_from_seed("seed words", path)
    assert first == DashmachineCrypto.derive_key_from_seed("seed words", path)
    assert first != DashmachineCrypto.derive_key_from_seed("other words", path)
    assert first != DashmachineCrypto.derive_key_from_seed("seed words", "m/0")
    # Usable as an encryption key
    DashmachineCrypto.public_key_from_private(first)
