"""Encryption of vendor tokens at rest."""

import base64

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from ..errors import ConfigurationError

_KDF_SALT = b"pricecharge-token-store"


class TokenCipher:
    """Fernet cipher keyed from the configured secret."""

    def __init__(self, secret: str):
        if not secret:
            raise ConfigurationError("token_encryption_key is not set")
        kdf = Scrypt(salt=_KDF_SALT, length=32, n=2**14, r=8, p=1)
        key = base64.urlsafe_b64encode(kdf.derive(secret.encode("utf-8")))
        self._fernet = Fernet(key)

    def encrypt(self, token: str) -> str:
        return self._fernet.encrypt(token.encode("utf-8")).decode("ascii")

    def decrypt(self, encrypted: str) -> str:
        """Decrypt a stored token.

        Raises:
            ConfigurationError: if the token was encrypted with another key
        """
        try:
            return self._fernet.decrypt(encrypted.encode("ascii")).decode("utf-8")
        except InvalidToken as e:
            raise ConfigurationError("Stored token cannot be decrypted with the configured key") from e
