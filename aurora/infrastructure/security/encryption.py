"""
保存する秘密情報（AIプロバイダーのAPIキー）の暗号化

Fernet (対称暗号化) を使用する。キー未設定の場合は無効化され、
呼び出し側は秘密情報を保存しない。
"""

from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from aurora.core.logging import get_logger

logger = get_logger(__name__)


class SecretBox:
    """
    文字列の暗号化/復号化

    Attributes:
        enabled: 暗号化キーが有効な場合True
    """

    def __init__(self, encryption_key: Optional[str]) -> None:
        """
        Args:
            encryption_key: Fernetキー（空/Noneの場合は無効）
        """
        self.cipher: Optional[Fernet] = None
        if encryption_key:
            try:
                self.cipher = Fernet(encryption_key.encode())
            except (ValueError, TypeError) as e:
                logger.error(f"Failed to initialize secret encryption: {e}")
                self.cipher = None
        self.enabled = self.cipher is not None

    def encrypt(self, plaintext: str) -> str:
        """
        文字列を暗号化

        Raises:
            ValueError: 暗号化が無効な場合
        """
        if self.cipher is None:
            raise ValueError("Secret encryption is disabled")
        return self.cipher.encrypt(plaintext.encode("utf-8")).decode("ascii")

    def decrypt(self, ciphertext: str) -> Optional[str]:
        """
        暗号文を復号化

        Returns:
            平文、キー不一致・改ざん・無効時はNone
        """
        if self.cipher is None:
            return None
        try:
            return self.cipher.decrypt(ciphertext.encode("ascii")).decode("utf-8")
        except (InvalidToken, UnicodeError):
            logger.warning("Stored secret could not be decrypted")
            return None


def generate_encryption_key() -> str:
    """新しいFernetキーを生成"""
    return Fernet.generate_key().decode()
