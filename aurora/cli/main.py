"""管理CLI"""

import json
import secrets
from pathlib import Path
from typing import Optional

import click
import pydantic

from aurora.core.config import get_settings
from aurora.infrastructure.security.encryption import generate_encryption_key
from aurora.infrastructure.storage import (
    QuestionStore,
    ResultStore,
    StatsStore,
    StoredQuestion,
)


def _data_dir(data_dir: Optional[Path]) -> Path:
    return data_dir or get_settings().DATA_DIR


@click.group()
def cli() -> None:
    """Aurora Personality 管理CLI"""
    pass


@cli.command("generate-secret")
def generate_secret() -> None:
    """セッション署名用シークレットとAI設定の暗号化キーを生成する"""
    click.echo(f"ANON_AUTH_SECRET={secrets.token_urlsafe(48)}")
    click.echo(f"AI_SETTINGS_SECRET={generate_encryption_key()}")
    click.echo(f"ADMIN_TOKEN={secrets.token_urlsafe(32)}")


@cli.command("import-questions")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="データディレクトリ（省略時はDATA_DIR）",
)
def import_questions(file: Path, data_dir: Optional[Path]) -> None:
    """JSONファイルから設問を取り込む（IDが同じものは上書き）"""
    try:
        raw = json.loads(file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON: {e}")

    items = raw.get("questions") if isinstance(raw, dict) else raw
    if not isinstance(items, list):
        raise click.ClickException("Expected a list of questions or {\"questions\": [...]}")

    try:
        questions = [StoredQuestion.model_validate(item) for item in items]
    except pydantic.ValidationError as e:
        raise click.ClickException(f"Invalid question: {e}")

    store = QuestionStore(_data_dir(data_dir))
    imported = store.import_many(questions)
    click.echo(f"✓ Imported {imported} questions (total: {store.count()})")


@cli.command("stats")
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="データディレクトリ（省略時はDATA_DIR）",
)
def show_stats(data_dir: Optional[Path]) -> None:
    """API利用統計と診断結果の件数を表示する"""
    directory = _data_dir(data_dir)
    stats = StatsStore(directory).read()
    summary = ResultStore(directory).summary()

    click.echo(f"Test completions: {stats.testCompletions}")
    click.echo(
        f"Tokens: input={stats.tokenUsage.input} output={stats.tokenUsage.output}"
    )
    click.echo("API calls:")
    for endpoint, count in sorted(stats.apiCalls.items()):
        click.echo(f"  - {endpoint}: {count}")
    click.echo(f"Stored results: {summary['total']}")
    for mbti_type, count in sorted(summary["byType"].items()):
        click.echo(f"  - {mbti_type}: {count}")


if __name__ == "__main__":
    cli()
