from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from random import Random


@dataclass
class TimeGenerator:
    """Deterministic, strictly increasing timestamp generator with random-ish gaps."""

    start: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc)
    _current: datetime | None = None
    _seed: int = 0
    _rng: Random = field(default_factory=lambda: Random(0))

    def __call__(self) -> datetime:
        return self.next()

    def next(self) -> datetime:
        if self._current is None:
            self._current = self.start
        self._current += timedelta(seconds=self._rng.randint(5, 60))
        return self._current

    def reset(self) -> None:
        self._current = None
        self._rng = Random(self._seed)


DEFAULT_TIME_GEN = TimeGenerator()
