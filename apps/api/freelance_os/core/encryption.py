"""Fernet field encryption for credential passwords and OAuth tokens.

Stored ciphertext carries an ``enc:`` prefix so plaintext that slipped in
before encryption was configured is detectable instead of silently
passed through.
"""

from cryptography.fernet import Fernet, InvalidToken

from freelance_os.core.config import settings


ENCRYPTED_PREFIX = "enc:"

_fernet: Fernet | None = None


def _get_fernet() -> Fernet:
    global _fernet
    if _fernet is None:
        if not settings.DATA_ENCRYPTION_KEY:
            raise RuntimeError(
                "DATA_ENCRYPTION_KEY not configured. "
                'Generate with: python -c "from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())"'
            )
        _fernet = Fernet(settings.DATA_ENCRYPTION_KEY.encode())
    return _fernet


def encrypt_value(value: str) -> str:
    """Encrypt for storage. Empty and already-encrypted values pass through."""
    if not value or value.startswith(ENCRYPTED_PREFIX):
        return value
    token = _get_fernet().encrypt(value.encode()).decode()
    return f"{ENCRYPTED_PREFIX}{token}"


def decrypt_value(value: str) -> str:
    """Decrypt a stored value; raises ValueError on missing prefix or bad token."""
    if not value:
        return value
    if not value.startswith(ENCRYPTED_PREFIX):
        raise ValueError("Encrypted data is missing prefix")
    try:
        return _get_fernet().decrypt(value[len(ENCRYPTED_PREFIX):].encode()).decode()
    except InvalidToken:
        raise ValueError("Invalid or corrupted encrypted data")
