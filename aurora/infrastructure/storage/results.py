"""匿名診断結果ストア"""

import math
import secrets
import time
from collections import Counter
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Iterable, Optional

from .json_store import JsonFileStore
from .models import DIMENSIONS, MBTI_TYPES, AnonymousResult, PagedResults, ResultsFile

MAX_RESULTS = 10_000
DAILY_TREND_DAYS = 30


def _parse_time(value: str) -> Optional[datetime]:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ResultStore:
    """
    data/results.json の読み書き

    上限を超えた場合は古いものから削除する（FIFO）。
    """

    def __init__(self, data_dir: Path, max_results: int = MAX_RESULTS) -> None:
        self.file = JsonFileStore(data_dir / "results.json", ResultsFile)
        self.max_results = max_results

    def append(self, result: dict[str, Any]) -> AnonymousResult:
        with self.file.lock:
            data = self.file.read()
            stored = AnonymousResult(
                id=f"{int(time.time() * 1000)}-{secrets.token_hex(3)}", **result
            )
            data.results.append(stored)
            if len(data.results) > self.max_results:
                data.results = data.results[-self.max_results :]
            self.file.write(data)
            return stored

    def query(
        self,
        page: int = 1,
        limit: int = 50,
        mbti_type: Optional[str] = None,
        locale: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
    ) -> PagedResults:
        """
        新しい順に絞り込み・ページングして返す

        date_toはその日の終わりまでを含む。
        """
        results = list(reversed(self.file.read().results))

        if mbti_type:
            results = [r for r in results if r.mbtiType == mbti_type]
        if locale:
            results = [r for r in results if r.locale == locale]
        start_time = _parse_time(date_from) if date_from else None
        if start_time:
            results = [
                r for r in results if (_parse_time(r.timestamp) or start_time) >= start_time
            ]
        end_time = _parse_time(date_to) if date_to else None
        if end_time:
            end_time = end_time + timedelta(days=1)
            results = [
                r for r in results if (_parse_time(r.timestamp) or end_time) <= end_time
            ]

        limit = max(1, limit)
        total = len(results)
        total_pages = max(1, math.ceil(total / limit))
        page = min(max(1, page), total_pages)
        start = (page - 1) * limit
        return PagedResults(
            total=total,
            page=page,
            limit=limit,
            totalPages=total_pages,
            results=results[start : start + limit],
        )

    def summary(self) -> dict[str, Any]:
        """タイプ別・ロケール別の件数"""
        results = self.file.read().results
        return {
            "total": len(results),
            "byType": dict(Counter(r.mbtiType for r in results)),
            "byLocale": dict(Counter(r.locale for r in results)),
        }

    def analytics(self, today: Optional[date] = None) -> dict[str, Any]:
        """
        管理パネルの分析用集計

        次元ごとの平均は勝者の割合を先頭文字側の割合に換算してから平均する。
        年齢層・性別が未回答の結果は分布に含めない。

        Args:
            today: 日別推移の最終日（省略時はUTCの今日）
        """
        results = self.file.read().results

        type_counts = Counter(r.mbtiType for r in results)
        type_distribution = sorted(
            ({"type": t, "count": type_counts.get(t, 0)} for t in MBTI_TYPES),
            key=lambda item: item["count"],
            reverse=True,
        )

        dimension_averages = []
        for dimension in DIMENSIONS:
            first, second = dimension[0], dimension[1]
            first_percent = 50
            if results:
                total = sum(
                    score.percent if score.winner == first else 100 - score.percent
                    for score in (r.scores[dimension] for r in results)
                )
                first_percent = math.floor(total / len(results) + 0.5)
            dimension_averages.append(
                {
                    "dimension": dimension,
                    "firstLetter": first,
                    "secondLetter": second,
                    "firstPercent": first_percent,
                }
            )

        today = today or datetime.now(timezone.utc).date()
        daily = {
            (today - timedelta(days=offset)).isoformat(): 0
            for offset in range(DAILY_TREND_DAYS - 1, -1, -1)
        }
        for r in results:
            day = r.timestamp[:10]
            if day in daily:
                daily[day] += 1

        return {
            "typeDistribution": type_distribution,
            "dimensionAverages": dimension_averages,
            "ageGroupDistribution": _distribution("ageGroup", (r.ageGroup for r in results)),
            "genderDistribution": _distribution("gender", (r.gender for r in results)),
            "dailyTrend": [{"date": d, "count": c} for d, c in daily.items()],
            "total": len(results),
        }


def _distribution(key: str, values: Iterable[Optional[str]]) -> list[dict[str, Any]]:
    counts = Counter(v for v in values if v)
    return [{key: value, "count": count} for value, count in counts.most_common()]
