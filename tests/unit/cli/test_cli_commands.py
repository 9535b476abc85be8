"""
管理CLIの単体テスト
"""

import json
from pathlib import Path

from click.testing import CliRunner
from cryptography.fernet import Fernet

from aurora.cli.main import cli
from aurora.infrastructure.storage import QuestionStore, ResultStore, StatsStore


def question(question_id: str, locale: str = "zh") -> dict:
    return {
        "id": question_id,
        "locale": locale,
        "text": "我喜欢和朋友聚会",
        "dimension": "EI",
        "agree": "E",
    }


class TestGenerateSecret:
    """generate-secretコマンドのテスト"""

    def test_outputs_env_lines(self) -> None:
        """環境変数の形式で3つの値を出力すること"""
        result = CliRunner().invoke(cli, ["generate-secret"])

        assert result.exit_code == 0
        values = dict(line.split("=", 1) for line in result.output.strip().splitlines())
        assert set(values) == {"ANON_AUTH_SECRET", "AI_SETTINGS_SECRET", "ADMIN_TOKEN"}
        Fernet(values["AI_SETTINGS_SECRET"].encode())
        assert len(values["ANON_AUTH_SECRET"]) >= 32


class TestImportQuestions:
    """import-questionsコマンドのテスト"""

    def test_import_object_format(self, tmp_path: Path) -> None:
        """{"questions": [...]} 形式を取り込めること"""
        source = tmp_path / "questions.json"
        source.write_text(
            json.dumps({"questions": [question("zh-ei-1"), question("en-ei-1", "en")]}),
            encoding="utf-8",
        )
        data_dir = tmp_path / "data"

        result = CliRunner().invoke(
            cli, ["import-questions", str(source), "--data-dir", str(data_dir)]
        )

        assert result.exit_code == 0, result.output
        assert "Imported 2 questions (total: 2)" in result.output
        assert QuestionStore(data_dir).count() == 2

    def test_import_list_overwrites(self, tmp_path: Path) -> None:
        """リスト形式も受け付け、同じIDは上書きすること"""
        source = tmp_path / "questions.json"
        source.write_text(json.dumps([question("zh-ei-1")]), encoding="utf-8")
        data_dir = tmp_path / "data"
        runner = CliRunner()

        runner.invoke(cli, ["import-questions", str(source), "--data-dir", str(data_dir)])
        result = runner.invoke(
            cli, ["import-questions", str(source), "--data-dir", str(data_dir)]
        )

        assert "Imported 1 questions (total: 1)" in result.output

    def test_invalid_json(self, tmp_path: Path) -> None:
        source = tmp_path / "broken.json"
        source.write_text("{", encoding="utf-8")

        result = CliRunner().invoke(
            cli, ["import-questions", str(source), "--data-dir", str(tmp_path)]
        )

        assert result.exit_code != 0
        assert "Invalid JSON" in result.output

    def test_invalid_question(self, tmp_path: Path) -> None:
        """不正な設問があれば何も取り込まないこと"""
        source = tmp_path / "questions.json"
        bad = {**question("zh-ei-2"), "dimension": "XY"}
        source.write_text(json.dumps([question("zh-ei-1"), bad]), encoding="utf-8")
        data_dir = tmp_path / "data"

        result = CliRunner().invoke(
            cli, ["import-questions", str(source), "--data-dir", str(data_dir)]
        )

        assert result.exit_code != 0
        assert "Invalid question" in result.output
        assert QuestionStore(data_dir).count() == 0

    def test_missing_file(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(cli, ["import-questions", str(tmp_path / "nope.json")])

        assert result.exit_code != 0


class TestStats:
    """statsコマンドのテスト"""

    def test_shows_counts(self, tmp_path: Path) -> None:
        """統計と結果件数を表示すること"""
        stats = StatsStore(tmp_path)
        stats.record_api_call("generate-questions")
        stats.record_token_usage(120, 30)
        stats.record_test_completion()
        scores = {d: {"winner": d[0], "percent": 60.0} for d in ("EI", "SN", "TF", "JP")}
        ResultStore(tmp_path).append(
            {"timestamp": "2026-01-01T00:00:00+00:00", "mbtiType": "ESTJ", "locale": "zh", "scores": scores}
        )

        result = CliRunner().invoke(cli, ["stats", "--data-dir", str(tmp_path)])

        assert result.exit_code == 0, result.output
        assert "Test completions: 1" in result.output
        assert "Tokens: input=120 output=30" in result.output
        assert "  - generate-questions: 1" in result.output
        assert "Stored results: 1" in result.output
        assert "  - ESTJ: 1" in result.output

    def test_empty_data_dir(self, tmp_path: Path) -> None:
        """データが無くても0件として表示すること"""
        result = CliRunner().invoke(cli, ["stats", "--data-dir", str(tmp_path / "empty")])

        assert result.exit_code == 0
        assert "Test completions: 0" in result.output
        assert "Stored results: 0" in result.output
