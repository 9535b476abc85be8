"""API利用統計ストア"""

from datetime import date, timedelta
from pathlib import Path
from typing import Callable, Optional

from .json_store import JsonFileStore
from .models import DailyStats, StatsData

DAILY_RETENTION_DAYS = 90


class StatsStore:
    """
    data/stats.json の読み書き

    日別の記録は90日分のみ保持する。
    """

    def __init__(
        self, data_dir: Path, today: Callable[[], date] = date.today
    ) -> None:
        self.file = JsonFileStore(data_dir / "stats.json", StatsData)
        self.today = today

    def read(self) -> StatsData:
        return self.file.read()

    def _update(self, mutate: Callable[[StatsData, DailyStats], None]) -> None:
        with self.file.lock:
            stats = self.file.read()
            day = self.today()
            daily = stats.daily.setdefault(day.isoformat(), DailyStats())
            mutate(stats, daily)
            cutoff = (day - timedelta(days=DAILY_RETENTION_DAYS)).isoformat()
            stats.daily = {k: v for k, v in stats.daily.items() if k >= cutoff}
            self.file.write(stats)

    def record_api_call(self, endpoint: str) -> None:
        def mutate(stats: StatsData, daily: DailyStats) -> None:
            stats.apiCalls[endpoint] = stats.apiCalls.get(endpoint, 0) + 1
            daily.calls += 1

        self._update(mutate)

    def record_token_usage(self, input_tokens: Optional[int], output_tokens: Optional[int]) -> None:
        def mutate(stats: StatsData, daily: DailyStats) -> None:
            stats.tokenUsage.input += max(0, input_tokens or 0)
            stats.tokenUsage.output += max(0, output_tokens or 0)

        self._update(mutate)

    def record_test_completion(self) -> None:
        def mutate(stats: StatsData, daily: DailyStats) -> None:
            stats.testCompletions += 1
            daily.tests += 1

        self._update(mutate)
