"""Tests for PII encryption: wire format, round trip, fail-soft decryption, key loading."""

import base64
import logging

import pytest
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from pydantic import SecretStr

from audittrail.application.dtos.audit_event import FieldChange
from audittrail.application.services.pii_encryption import (
    ENCRYPTED_PII_PREFIX,
    PiiEncryptor,
    generate_pii_encryption_key,
    is_encrypted,
    is_sensitive_field,
    is_well_formed_encrypted,
    load_pii_encryption_key,
)
from audittrail.application.services.pii_registry import PiiFieldRegistry


class TestEncryptDecrypt:
    """AES-256-GCM round trip and wire format."""

    @pytest.mark.parametrize("plaintext", ["a@b.com", "x", "ünïcødé ✓", "a:b:c", "z" * 5000])
    def test_round_trip(self, encryptor: PiiEncryptor, plaintext: str) -> None:
        assert encryptor.decrypt(encryptor.encrypt(plaintext)) == plaintext

    def test_random_nonce(self, encryptor: PiiEncryptor) -> None:
        first = encryptor.encrypt("a@b.com")
        second = encryptor.encrypt("a@b.com")
        assert first != second
        assert encryptor.decrypt(first) == encryptor.decrypt(second) == "a@b.com"

    def test_wire_format(self, encryptor: PiiEncryptor, pii_key: bytes) -> None:
        out = encryptor.encrypt("a@b.com")
        assert out.startswith(ENCRYPTED_PII_PREFIX)
        nonce_b64, tag_b64, ct_b64 = out[len(ENCRYPTED_PII_PREFIX) :].split(":")
        nonce = base64.b64decode(nonce_b64, validate=True)
        tag = base64.b64decode(tag_b64, validate=True)
        ciphertext = base64.b64decode(ct_b64, validate=True)
        assert len(nonce) == 12
        assert len(tag) == 16
        assert len(ciphertext) == len("a@b.com")
        # Readable by any AES-GCM implementation holding the key
        assert AESGCM(pii_key).decrypt(nonce, ciphertext + tag, None) == b"a@b.com"

    def test_empty_string_not_encrypted(self, encryptor: PiiEncryptor) -> None:
        assert encryptor.encrypt("") == ""

    def test_inert_without_key(self, plain_encryptor: PiiEncryptor) -> None:
        assert plain_encryptor.is_configured is False
        assert plain_encryptor.encrypt("a@b.com") == "a@b.com"


class TestDecryptFailSoft:
    """decrypt() never raises; the input comes back unchanged."""

    def test_not_prefixed(self, encryptor: PiiEncryptor) -> None:
        assert encryptor.decrypt("plain@example.com") == "plain@example.com"

    @pytest.mark.parametrize("value", ["enc:abc", "enc:a:b", "enc:a:b:c:d"])
    def test_wrong_segment_count(self, encryptor: PiiEncryptor, value: str) -> None:
        assert encryptor.decrypt(value) == value

    def test_bad_base64(self, encryptor: PiiEncryptor) -> None:
        assert encryptor.decrypt("enc:!!!:???:***") == "enc:!!!:???:***"

    def test_tampered_ciphertext(self, encryptor: PiiEncryptor, caplog) -> None:
        encrypted = encryptor.encrypt("a@b.com")
        prefix, rest = encrypted[: len(ENCRYPTED_PII_PREFIX)], encrypted[len(ENCRYPTED_PII_PREFIX) :]
        nonce_b64, tag_b64, ct_b64 = rest.split(":")
        ciphertext = bytearray(base64.b64decode(ct_b64))
        ciphertext[0] ^= 0x01
        tampered = f"{prefix}{nonce_b64}:{tag_b64}:{base64.b64encode(bytes(ciphertext)).decode()}"
        with caplog.at_level(logging.WARNING):
            assert encryptor.decrypt(tampered) == tampered
        assert "authentication tag mismatch" in caplog.text

    def test_tampered_tag(self, encryptor: PiiEncryptor) -> None:
        encrypted = encryptor.encrypt("a@b.com")
        nonce_b64, _tag_b64, ct_b64 = encrypted[len(ENCRYPTED_PII_PREFIX) :].split(":")
        bad_tag = base64.b64encode(b"\x00" * 16).decode()
        tampered = f"{ENCRYPTED_PII_PREFIX}{nonce_b64}:{bad_tag}:{ct_b64}"
        assert encryptor.decrypt(tampered) == tampered

    def test_wrong_key(self, encryptor: PiiEncryptor, registry: PiiFieldRegistry) -> None:
        other = PiiEncryptor(registry, bytes(32))
        encrypted = encryptor.encrypt("a@b.com")
        assert other.decrypt(encrypted) == encrypted

    def test_no_key_returns_input(self, encryptor: PiiEncryptor, plain_encryptor: PiiEncryptor) -> None:
        encrypted = encryptor.encrypt("a@b.com")
        assert plain_encryptor.decrypt(encrypted) == encrypted


class TestFieldLevel:
    """encrypt_if_pii, actor fields and change lists."""

    def test_encrypt_if_pii(self, encryptor: PiiEncryptor) -> None:
        out = encryptor.encrypt_if_pii("a@b.com", "Email", "doc")
        assert is_encrypted(out)
        assert encryptor.encrypt_if_pii("Title", "title", "doc") == "Title"
        assert encryptor.encrypt_if_pii(42, "email", "doc") == 42
        assert encryptor.encrypt_if_pii("", "email", "doc") == ""

    def test_encrypt_if_pii_skips_already_encrypted(self, encryptor: PiiEncryptor) -> None:
        once = encryptor.encrypt("a@b.com")
        assert encryptor.encrypt_if_pii(once, "email", "doc") == once

    @pytest.mark.parametrize("value", ["enc:alice@example.com", "enc:a:b:c", "enc:"])
    def test_encrypt_if_pii_encrypts_prefixed_plaintext(
        self, encryptor: PiiEncryptor, value: str
    ) -> None:
        out = encryptor.encrypt_if_pii(value, "email", "doc")
        assert out != value
        assert is_well_formed_encrypted(out)
        assert encryptor.decrypt(out) == value

    def test_actor_fields(self, encryptor: PiiEncryptor) -> None:
        assert is_encrypted(encryptor.encrypt_actor_field("actorEmail", "a@b.com"))
        assert encryptor.encrypt_actor_field("actorEmail", None) is None
        assert encryptor.encrypt_actor_field("resourceName", "a@b.com") == "a@b.com"

    def test_decrypt_changes(self, encryptor: PiiEncryptor) -> None:
        changes = [
            FieldChange("email", encryptor.encrypt("old@b.com"), encryptor.encrypt("new@b.com")),
            FieldChange("title", "A", "B"),
            FieldChange("allowedEmails", None, [encryptor.encrypt("x@y.z"), "plain"]),
        ]
        revealed = encryptor.decrypt_changes(changes, "site")
        assert revealed == [
            FieldChange("email", "old@b.com", "new@b.com"),
            FieldChange("title", "A", "B"),
            FieldChange("allowedEmails", None, ["x@y.z", "plain"]),
        ]

    def test_decrypt_changes_none_and_no_key(self, plain_encryptor: PiiEncryptor) -> None:
        changes = [FieldChange("email", "enc:a:b:c", None)]
        assert plain_encryptor.decrypt_changes(None, "doc") is None
        assert plain_encryptor.decrypt_changes(changes, "doc") == changes


class TestKeyLoading:
    """Configured key: base64 of exactly 32 bytes, otherwise encryption is off."""

    def test_generate_key_is_loadable(self) -> None:
        key = load_pii_encryption_key(generate_pii_encryption_key())
        assert key is not None and len(key) == 32

    def test_secret_str(self, pii_key: bytes, pii_key_b64: str) -> None:
        assert load_pii_encryption_key(SecretStr(pii_key_b64)) == pii_key

    @pytest.mark.parametrize("raw", [None, "", "not base64 at all!", base64.b64encode(b"short").decode()])
    def test_unusable_key(self, raw) -> None:
        assert load_pii_encryption_key(raw) is None

    def test_from_config(self, registry: PiiFieldRegistry, pii_key_b64: str) -> None:
        assert PiiEncryptor.from_config(registry, pii_key_b64).is_configured
        assert not PiiEncryptor.from_config(registry, "bad").is_configured

    def test_constructor_rejects_wrong_length(self, registry: PiiFieldRegistry) -> None:
        with pytest.raises(ValueError):
            PiiEncryptor(registry, b"0" * 16)


@pytest.mark.parametrize(
    "name,expected",
    [("password", True), ("PASSWORD", True), ("apiKey", True), ("clientSecret", True), ("passwordHint", False)],
)
def test_is_sensitive_field(name: str, expected: bool) -> None:
    assert is_sensitive_field(name) is expected
