"""設問題庫ストア"""

from pathlib import Path
from typing import Any, Iterable, Optional

from aurora.domain.exceptions.base import NotFoundError

from .json_store import JsonFileStore
from .models import QuestionFields, QuestionsFile, StoredQuestion, utcnow_iso


class QuestionStore:
    """
    data/questions.json の読み書き

    IDは ``<locale>-<dimension小文字>-<連番>`` 形式で採番する。
    """

    def __init__(self, data_dir: Path) -> None:
        self.file = JsonFileStore(data_dir / "questions.json", QuestionsFile)

    def _save(self, data: QuestionsFile) -> None:
        data.updatedAt = utcnow_iso()
        self.file.write(data)

    def list(
        self, locale: Optional[str] = None, dimension: Optional[str] = None
    ) -> list[StoredQuestion]:
        questions = self.file.read().questions
        if locale:
            questions = [q for q in questions if q.locale == locale]
        if dimension:
            questions = [q for q in questions if q.dimension == dimension]
        return questions

    def count(self) -> int:
        return len(self.file.read().questions)

    def add(self, fields: QuestionFields) -> StoredQuestion:
        with self.file.lock:
            data = self.file.read()
            taken = {q.id for q in data.questions}
            prefix = f"{fields.locale}-{fields.dimension.lower()}-"
            seq = sum(
                1
                for q in data.questions
                if q.locale == fields.locale and q.dimension == fields.dimension
            ) + 1
            while f"{prefix}{seq}" in taken:
                seq += 1
            question = StoredQuestion(id=f"{prefix}{seq}", **fields.model_dump())
            data.questions.append(question)
            self._save(data)
            return question

    def update(self, question_id: str, updates: dict[str, Any]) -> StoredQuestion:
        """
        設問を部分更新

        Raises:
            NotFoundError: 設問が存在しない場合
            pydantic.ValidationError: 更新後の値が不正な場合
        """
        with self.file.lock:
            data = self.file.read()
            for index, question in enumerate(data.questions):
                if question.id == question_id:
                    merged = question.model_dump()
                    merged.update({k: v for k, v in updates.items() if k != "id"})
                    updated = StoredQuestion.model_validate(merged)
                    data.questions[index] = updated
                    self._save(data)
                    return updated
        raise NotFoundError(f"Question {question_id} not found")

    def delete(self, question_id: str) -> None:
        """
        設問を削除

        Raises:
            NotFoundError: 設問が存在しない場合
        """
        with self.file.lock:
            data = self.file.read()
            remaining = [q for q in data.questions if q.id != question_id]
            if len(remaining) == len(data.questions):
                raise NotFoundError(f"Question {question_id} not found")
            data.questions = remaining
            self._save(data)

    def import_many(self, questions: Iterable[StoredQuestion]) -> int:
        """IDで重複排除して取り込む（既存IDは上書き）"""
        with self.file.lock:
            data = self.file.read()
            merged = {q.id: q for q in data.questions}
            imported = 0
            for question in questions:
                merged[question.id] = question
                imported += 1
            data.questions = list(merged.values())
            self._save(data)
            return imported
