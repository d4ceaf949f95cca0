from __future__ import annotations

from dataclasses import dataclass

from ..core.constants import AVERAGE_RATE_THRESHOLD, GOOD_RATE_THRESHOLD
from ..core.enums import CompletionBucket


def completion_rate(attended: int, total: int) -> int:
    """Whole percent, rounded half up. Zero total gives 0."""
    if total <= 0:
        return 0
    return (attended * 200 + total) // (total * 2)


def classify(rate: int) -> CompletionBucket:
    if rate >= GOOD_RATE_THRESHOLD:
        return CompletionBucket.GOOD
    if rate >= AVERAGE_RATE_THRESHOLD:
        return CompletionBucket.AVERAGE
    return CompletionBucket.POOR


@dataclass(frozen=True)
class CompletionStat:
    user_id: int
    total: int
    attended: int
    absent: int

    @property
    def rate(self) -> int:
        return completion_rate(self.attended, self.total)

    @property
    def bucket(self) -> CompletionBucket:
        return classify(self.rate)

    def to_dict(self) -> dict:
        return {
            "userId": self.user_id,
            "total": self.total,
            "attended": self.attended,
            "absent": self.absent,
            "rate": self.rate,
            "bucket": self.bucket.value,
        }


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: list[dict]
