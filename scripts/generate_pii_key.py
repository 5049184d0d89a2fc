"""Print a new AUDIT_PII_ENCRYPTION_KEY (base64 of 32 random bytes).

Usage:
    python -m scripts.generate_pii_key
Store the output in the environment or .env. Rotating the key makes values
encrypted under the old key unreadable (they are returned as ciphertext).
"""

from audittrail.application.services.pii_encryption import generate_pii_encryption_key


def main() -> None:
    print(f"AUDIT_PII_ENCRYPTION_KEY={generate_pii_encryption_key()}")


if __name__ == "__main__":
    main()
