"""Field-level PII encryption for audit records (AES-256-GCM).

Encrypted values are self-describing strings:

    enc:<base64 nonce>:<base64 tag>:<base64 ciphertext>

Standard base64 with padding; the format must stay bit-exact so every
instance sharing the key can read every other instance's records.

Without a usable key the encryptor is inert: values pass through as
plaintext and nothing raises. Decryption never raises either; anything that
does not decrypt is returned unchanged and logged.
"""

from __future__ import annotations

import base64
import binascii
import secrets
from collections.abc import Sequence
from typing import Any

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from pydantic import SecretStr

from audittrail.application.dtos.audit_event import FieldChange
from audittrail.application.services.pii_registry import PiiFieldRegistry
from audittrail.shared.enums import AuditResourceType
from audittrail.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

ENCRYPTED_PII_PREFIX = "enc:"
PII_KEY_LENGTH = 32  # AES-256
PII_NONCE_LENGTH = 12  # 96-bit GCM nonce
PII_TAG_LENGTH = 16  # 128-bit tag

REDACTED = "[REDACTED]"

# Never stored in any recoverable form. Exact (case-insensitive) match.
SENSITIVE_FIELDS: frozenset[str] = frozenset(
    {
        "password",
        "secret",
        "token",
        "apikey",
        "privatekey",
        "accesstoken",
        "refreshtoken",
        "clientsecret",
        "encryptionkey",
        "signingkey",
        "webhooksecret",
    }
)


def is_sensitive_field(field_name: str) -> bool:
    """True if the field must be fully redacted from the audit trail."""
    return field_name.lower() in SENSITIVE_FIELDS


def is_encrypted(value: Any) -> bool:
    """True if value is a string in the encrypted PII format (prefix check only)."""
    return isinstance(value, str) and value.startswith(ENCRYPTED_PII_PREFIX)


def _decode_encrypted(value: str) -> tuple[bytes, bytes, bytes] | None:
    """Split an enc: value into (nonce, tag, ciphertext); None if not well formed."""
    parts = value[len(ENCRYPTED_PII_PREFIX) :].split(":")
    if len(parts) != 3:
        return None
    try:
        nonce, tag, ciphertext = (base64.b64decode(p, validate=True) for p in parts)
    except (binascii.Error, ValueError):
        return None
    if len(nonce) != PII_NONCE_LENGTH or len(tag) != PII_TAG_LENGTH:
        return None
    return nonce, tag, ciphertext


def is_well_formed_encrypted(value: Any) -> bool:
    """True if value has the prefix and decodes to a nonce, tag and ciphertext."""
    return is_encrypted(value) and _decode_encrypted(value) is not None


def generate_pii_encryption_key() -> str:
    """Return a new key for AUDIT_PII_ENCRYPTION_KEY: base64 of 32 random bytes."""
    return base64.b64encode(secrets.token_bytes(PII_KEY_LENGTH)).decode("ascii")


def load_pii_encryption_key(raw: SecretStr | str | None) -> bytes | None:
    """Decode a configured key; None (PII encryption disabled) if absent or invalid."""
    if raw is None:
        return None
    key_base64 = raw.get_secret_value() if isinstance(raw, SecretStr) else raw
    if not key_base64:
        return None
    try:
        key = base64.b64decode(key_base64, validate=True)
    except (binascii.Error, ValueError):
        logger.warning("Invalid AUDIT_PII_ENCRYPTION_KEY format, PII encryption disabled")
        return None
    if len(key) != PII_KEY_LENGTH:
        logger.warning(
            "AUDIT_PII_ENCRYPTION_KEY must be %d bytes (256 bits), got %d; PII encryption disabled",
            PII_KEY_LENGTH,
            len(key),
        )
        return None
    return key


class PiiEncryptor:
    """Encrypts and decrypts PII values; consults the registry for what is PII."""

    def __init__(self, registry: PiiFieldRegistry, key: bytes | None = None) -> None:
        if key is not None and len(key) != PII_KEY_LENGTH:
            raise ValueError(f"PII encryption key must be {PII_KEY_LENGTH} bytes")
        self.registry = registry
        self._aesgcm = AESGCM(key) if key is not None else None

    @classmethod
    def from_config(
        cls, registry: PiiFieldRegistry, raw_key: SecretStr | str | None
    ) -> PiiEncryptor:
        """Build from the configured base64 key; inert when the key is unusable."""
        return cls(registry, load_pii_encryption_key(raw_key))

    @property
    def is_configured(self) -> bool:
        """True when a valid key is loaded."""
        return self._aesgcm is not None

    def encrypt(self, value: str) -> str:
        """Encrypt one string. Returns it unchanged when inert or empty."""
        if self._aesgcm is None or not value:
            return value
        try:
            nonce = secrets.token_bytes(PII_NONCE_LENGTH)
            # AESGCM appends the tag to the ciphertext
            sealed = self._aesgcm.encrypt(nonce, value.encode("utf-8"), None)
        except (ValueError, OverflowError) as e:
            logger.warning("Failed to encrypt PII value, storing as-is: %s", e)
            return value
        ciphertext, tag = sealed[:-PII_TAG_LENGTH], sealed[-PII_TAG_LENGTH:]
        return (
            f"{ENCRYPTED_PII_PREFIX}{_b64(nonce)}:{_b64(tag)}:{_b64(ciphertext)}"
        )

    def decrypt(self, value: str) -> str:
        """Decrypt one encrypted string; return the input unchanged on any failure."""
        if self._aesgcm is None or not is_encrypted(value):
            return value
        parts = value[len(ENCRYPTED_PII_PREFIX) :].split(":")
        if len(parts) != 3:
            logger.warning("Malformed encrypted PII value: expected 3 segments, got %d", len(parts))
            return value
        try:
            nonce, tag, ciphertext = (base64.b64decode(p, validate=True) for p in parts)
            if len(nonce) != PII_NONCE_LENGTH or len(tag) != PII_TAG_LENGTH:
                raise ValueError("unexpected nonce or tag length")
            plaintext = self._aesgcm.decrypt(nonce, ciphertext + tag, None)
            return plaintext.decode("utf-8")
        except InvalidTag:
            logger.warning("Failed to decrypt PII value: authentication tag mismatch")
        except ValueError as e:
            # binascii.Error and UnicodeDecodeError are ValueErrors
            logger.warning("Failed to decrypt PII value: %s", e)
        return value

    def encrypt_if_pii(
        self, value: Any, field_name: str, resource_type: AuditResourceType | str
    ) -> Any:
        """Encrypt a non-empty string of a PII field; pass everything else through.

        Values already in encrypted form (e.g. produced by the diff engine)
        are not encrypted twice. A plaintext that merely starts with the
        prefix is still encrypted.
        """
        if (
            self._aesgcm is None
            or not isinstance(value, str)
            or not value
            or is_well_formed_encrypted(value)
        ):
            return value
        if not self.registry.is_pii(resource_type, field_name):
            return value
        return self.encrypt(value)

    def encrypt_actor_field(self, field_name: str, value: str | None) -> str | None:
        """Encrypt actor email/ip/device regardless of resource type."""
        if not value or not self.registry.is_actor_pii_field(field_name):
            return value
        return self.encrypt(value)

    def decrypt_value(self, value: Any) -> Any:
        """Decrypt an encrypted string or each encrypted string in a list."""
        if isinstance(value, str):
            return self.decrypt(value) if is_encrypted(value) else value
        if isinstance(value, list):
            return [self.decrypt(item) if is_encrypted(item) else item for item in value]
        return value

    def decrypt_changes(
        self,
        changes: Sequence[FieldChange] | None,
        resource_type: AuditResourceType | str,
    ) -> list[FieldChange] | None:
        """Reveal PII fields of a change list for authorized viewers.

        Returns None for None, and the input unchanged when no key is loaded.
        Non-PII fields and non-string values are untouched.
        """
        if changes is None:
            return None
        if self._aesgcm is None:
            return changes  # type: ignore[return-value]
        revealed: list[FieldChange] = []
        for change in changes:
            if not self.registry.is_pii(resource_type, change.field):
                revealed.append(change)
                continue
            revealed.append(
                FieldChange(
                    field=change.field,
                    old=self.decrypt_value(change.old),
                    new=self.decrypt_value(change.new),
                )
            )
        return revealed


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")
