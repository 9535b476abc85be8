"""管理パネルから保存されるAIプロバイダー設定"""

from pathlib import Path
from typing import Optional

from aurora.core.logging import get_logger
from aurora.infrastructure.security.encryption import SecretBox

from .json_store import JsonFileStore
from .models import AIConfigInput, StoredAIConfig, utcnow_iso

logger = get_logger(__name__)


class AISettingsStore:
    """
    data/ai-config.json の読み書き

    APIキーはFernetで暗号化して保存する。暗号化キーが無い場合、
    APIキーは保存しない。
    """

    def __init__(self, data_dir: Path, secret_box: SecretBox) -> None:
        self.file = JsonFileStore(data_dir / "ai-config.json", StoredAIConfig)
        self.secret_box = secret_box

    def exists(self) -> bool:
        return self.file.path.exists()

    def load(self) -> Optional[AIConfigInput]:
        """保存済み設定を読み込む（未保存ならNone）"""
        if not self.exists():
            return None
        stored = self.file.read()
        api_key = None
        if stored.apiKeyEncrypted:
            api_key = self.secret_box.decrypt(stored.apiKeyEncrypted)
        return AIConfigInput(
            provider=stored.provider,
            baseUrl=stored.baseUrl,
            model=stored.model,
            apiKey=api_key,
            updatedAt=stored.updatedAt,
        )

    def save(self, config: AIConfigInput) -> StoredAIConfig:
        stored = StoredAIConfig(
            provider=config.provider,
            baseUrl=config.baseUrl,
            model=config.model,
            updatedAt=utcnow_iso(),
        )
        if config.apiKey:
            if self.secret_box.enabled:
                stored.apiKeyEncrypted = self.secret_box.encrypt(config.apiKey)
            else:
                logger.warning("AI_SETTINGS_SECRET is not set, API key was not persisted")
        self.file.write(stored)
        return stored
