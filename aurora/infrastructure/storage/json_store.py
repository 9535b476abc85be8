"""
ファイルベースのJSONストア

単一プロセス・単一ノード前提。書き込みは一時ファイル経由の置き換えで行い、
読み書きはストアごとのロックで直列化する。
"""

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Generic, Type, TypeVar

from pydantic import BaseModel, ValidationError

from aurora.core.logging import get_logger

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class JsonFileStore(Generic[ModelT]):
    """
    1ファイル = 1モデルのJSONストア

    ファイルが無い・壊れている場合は空のモデルを返す。
    """

    def __init__(self, path: Path, model: Type[ModelT]) -> None:
        self.path = path
        self.model = model
        self.lock = threading.RLock()

    def _ensure_dir(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def read(self) -> ModelT:
        """ファイルを読み込む"""
        with self.lock:
            if not self.path.exists():
                return self.model()
            try:
                raw = json.loads(self.path.read_text(encoding="utf-8"))
                return self.model.model_validate(raw)
            except (OSError, json.JSONDecodeError, ValidationError) as e:
                logger.error(f"Failed to read {self.path.name}, using empty data: {e}")
                return self.model()

    def write(self, data: ModelT) -> None:
        """ファイルを書き込む（アトミックな置き換え）"""
        with self.lock:
            self._ensure_dir()
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(
                        data.model_dump(mode="json", exclude_none=True),
                        f,
                        ensure_ascii=False,
                        indent=2,
                    )
                os.replace(tmp_path, self.path)
            except BaseException:
                Path(tmp_path).unlink(missing_ok=True)
                raise
