from cryptography.fernet import Fernet, MultiFernet


class EncryptionManager:
    """
    Brokerage credential encryption.
    Multiple keys are accepted so they can be rotated.

    .env:
      ENCRYPTION_KEYS=newest_key,older_key,oldest_key

    Encrypts with the first (newest) key, decrypts with any of them.
    """

    def __init__(self, keys: list[str]):
        if not keys:
            raise ValueError("At least one encryption key is required")
        fernets = [Fernet(k.encode() if isinstance(k, str) else k) for k in keys]
        self._multi = MultiFernet(fernets)

    @classmethod
    def ephemeral(cls) -> "EncryptionManager":
        """Single random key; ciphertexts do not survive a restart."""
        return cls([Fernet.generate_key().decode()])

    def encrypt(self, plaintext: str) -> str:
        return self._multi.encrypt(plaintext.encode()).decode()

    def decrypt(self, ciphertext: str) -> str:
        return self._multi.decrypt(ciphertext.encode()).decode()


def mask_secret(secret: str | None) -> str | None:
    """Keep the first four characters and mask the rest."""
    if not secret:
        return None
    return f"{secret[:4]}-****" if len(secret) > 4 else "****"
