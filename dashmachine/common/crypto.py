"""ECIES encryption and double SHA256 hashing.

All key material and encrypted payloads use standard base64:

* private keys are 32-byte big-endian secp256k1 scalars
* public keys are 33-byte compressed SEC1 points
* encrypted payloads are the binary container described on
  ``DashmachineCrypto.encrypt``

Digests are lowercase hex.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import os
import struct

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.ciphers.aead import ChaCha20Poly1305
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from dashmachine.common.exceptions import CryptoError

CURVE = ec.SECP256K1()
CURVE_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
PRIVATE_KEY_LEN = 32
PUBLIC_KEY_LEN = 33

PAYLOAD_MAGIC = b"DM"
PAYLOAD_VERSION = 1
SALT_LEN = 16
NONCE_LEN = 12
KDF_INFO = b"dashmachine-ecies-v1"


def _b64decode(value: str, what: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError, TypeError) as e:
        msg = f"{what} is not valid base64"
        raise CryptoError(msg) from e


def _b64encode(value: bytes) -> str:
    return base64.b64encode(value).decode("ascii")


def _load_private_key(private_key: str) -> ec.EllipticCurvePrivateKey:
    raw = _b64decode(private_key, "Private key")
    if len(raw) != PRIVATE_KEY_LEN:
        msg = f"Private key must be {PRIVATE_KEY_LEN} bytes, got {len(raw)}"
        raise CryptoError(msg)
    scalar = int.from_bytes(raw, "big")
    if not 0 < scalar < CURVE_ORDER:
        msg = "Private key is out of range for secp256k1"
        raise CryptoError(msg)
    return ec.derive_private_key(scalar, CURVE)


def _load_public_key(public_key: str) -> ec.EllipticCurvePublicKey:
    raw = _b64decode(public_key, "Public key")
    if len(raw) != PUBLIC_KEY_LEN:
        msg = f"Public key must be {PUBLIC_KEY_LEN} bytes, got {len(raw)}"
        raise CryptoError(msg)
    try:
        return ec.EllipticCurvePublicKey.from_encoded_point(CURVE, raw)
    except ValueError as e:
        msg = "Public key is not a point on secp256k1"
        raise CryptoError(msg) from e


def _private_bytes(key: ec.EllipticCurvePrivateKey) -> bytes:
    return key.private_numbers().private_value.to_bytes(PRIVATE_KEY_LEN, "big")


def _public_bytes(key: ec.EllipticCurvePublicKey) -> bytes:
    return key.public_bytes(
        serialization.Encoding.X962,
        serialization.PublicFormat.CompressedPoint,
    )


def _derive_message_key(
    shared: bytes, salt: bytes, sender_pub: bytes, recipient_pub: bytes
) -> bytes:
    return HKDF(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        info=KDF_INFO + sender_pub + recipient_pub,
    ).derive(shared)


class DashmachineCrypto:
    """ECIES encryption & decryption and double SHA256 hashing.

    The class holds only static methods, use ``DashmachineCrypto.encrypt``
    directly rather than creating an instance.
    """

    @staticmethod
    def generate_keypair() -> tuple[str, str]:
        """Generate a new secp256k1 key pair as (private, public) base64."""
        private_key = ec.generate_private_key(CURVE)
        return (
            _b64encode(_private_bytes(private_key)),
            _b64encode(_public_bytes(private_key.public_key())),
        )

    @staticmethod
    def public_key_from_private(private_key: str) -> str:
        """Return the base64 compressed public key for a private key."""
        key = _load_private_key(private_key)
        return _b64encode(_public_bytes(key.public_key()))

    @staticmethod
    def derive_key_from_seed(seed: str, path: str) -> str:
        """Deterministically derive a private key from an account seed.

        This is a development stand-in for HD wallet derivation, used by the
        gateway client and the devnet. Same seed and path always give the
        same key.
        """
        counter = 0
        while True:
            material = HKDF(
                algorithm=hashes.SHA256(),
                length=PRIVATE_KEY_LEN,
                salt=b"dashmachine-account",
                info=f"{path}:{counter}".encode(),
            ).derive(seed.encode())
            scalar = int.from_bytes(material, "big")
            if 0 < scalar < CURVE_ORDER:
                return _b64encode(material)
            counter += 1

    @staticmethod
    def encrypt(sender_private_key: str, message: str, recipient_public_key: str) -> str:
        """Encrypt a message for a specific recipient.

        The ECDH secret between the sender's private key and the recipient's
        public key authenticates the sender: only the holder of the matching
        sender key pair could have produced a payload that decrypts.

        Payload container (then base64)::

            b"DM" | version (1) | salt_len (1) | salt | nonce_len (1) | nonce | ciphertext+tag

        The header up to and including the nonce is bound as associated data.

        Args:
            sender_private_key: base64 private key of the sending identity
            message: plaintext to encrypt
            recipient_public_key: base64 public key of the receiving identity

        Returns:
            base64 encrypted payload

        Raises:
            CryptoError: malformed key material
        """
        sender = _load_private_key(sender_private_key)
        recipient_pub = _load_public_key(recipient_public_key)

        shared = sender.exchange(ec.ECDH(), recipient_pub)
        salt = os.urandom(SALT_LEN)
        nonce = os.urandom(NONCE_LEN)
        key = _derive_message_key(
            shared, salt, _public_bytes(sender.public_key()), _public_bytes(recipient_pub)
        )

        header = (
            PAYLOAD_MAGIC
            + struct.pack(">BB", PAYLOAD_VERSION, SALT_LEN)
            + salt
            + struct.pack(">B", NONCE_LEN)
            + nonce
        )
        ciphertext = ChaCha20Poly1305(key).encrypt(nonce, message.encode("utf-8"), header)
        return _b64encode(header + ciphertext)

    @staticmethod
    def decrypt(recipient_private_key: str, payload: str, sender_public_key: str) -> str:
        """Decrypt a payload produced by ``encrypt``.

        Raises:
            CryptoError: malformed keys or payload, or the payload was not
                produced by the matching key pair
        """
        recipient = _load_private_key(recipient_private_key)
        sender_pub = _load_public_key(sender_public_key)
        raw = _b64decode(payload, "Encrypted payload")

        offset = len(PAYLOAD_MAGIC)
        if raw[:offset] != PAYLOAD_MAGIC:
            msg = "Encrypted payload has an unknown format"
            raise CryptoError(msg)
        try:
            version, salt_len = struct.unpack_from(">BB", raw, offset)
            offset += 2
            salt = raw[offset : offset + salt_len]
            offset += salt_len
            (nonce_len,) = struct.unpack_from(">B", raw, offset)
            offset += 1
        except struct.error as e:
            msg = "Encrypted payload is truncated"
            raise CryptoError(msg) from e
        if version != PAYLOAD_VERSION:
            msg = f"Unsupported payload version {version}"
            raise CryptoError(msg)
        if len(salt) != SALT_LEN or nonce_len != NONCE_LEN:
            msg = "Encrypted payload header is malformed"
            raise CryptoError(msg)
        nonce = raw[offset : offset + nonce_len]
        offset += nonce_len
        if len(nonce) != NONCE_LEN:
            msg = "Encrypted payload is truncated"
            raise CryptoError(msg)
        header, ciphertext = raw[:offset], raw[offset:]

        shared = recipient.exchange(ec.ECDH(), sender_pub)
        key = _derive_message_key(
            shared, salt, _public_bytes(sender_pub), _public_bytes(recipient.public_key())
        )
        try:
            plaintext = ChaCha20Poly1305(key).decrypt(nonce, ciphertext, header)
        except InvalidTag as e:
            msg = "Payload does not decrypt with the given key pair"
            raise CryptoError(msg) from e
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            msg = "Decrypted payload is not valid UTF-8"
            raise CryptoError(msg) from e

    @staticmethod
    def hash(message: str) -> str:
        """Double SHA256 hash a message and return the digest as hex."""
        first = hashlib.sha256(message.encode("utf-8")).digest()
        return hashlib.sha256(first).hexdigest()

    @staticmethod
    def verify(message: str, digest: str) -> bool:
        """Double SHA256 hash a message and compare against ``digest``."""
        return hmac.compare_digest(
            DashmachineCrypto.hash(message).encode(), digest.encode("utf-8")
        )

    @staticmethod
    def generate_entropy() -> str:
        """Return a fresh random public identifier, usable as a nonce."""
        private_key = ec.generate_private_key(CURVE)
        return _b64encode(_public_bytes(private_key.public_key()))
