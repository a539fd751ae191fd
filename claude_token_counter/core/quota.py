"""
Monthly token quota tracking.

Compares a snapshot's token total against a subscription limit.
"""

from dataclasses import dataclass

from claude_token_counter.local.models import Snapshot


@dataclass(frozen=True)
class QuotaStatus:
    """Token usage measured against a monthly limit."""
    limit: int
    used: int

    def __post_init__(self):
        """Validate limit is not negative."""
        if self.limit < 0:
            raise ValueError("limit must be >= 0")

    @property
    def percentage_used(self) -> float:
        """Share of the limit used, in percent; 0.0 when the limit is 0."""
        if self.limit == 0:
            return 0.0
        return (self.used / self.limit) * 100.0

    @property
    def remaining(self) -> int:
        """Tokens left under the limit; negative once over it."""
        return self.limit - self.used

    @property
    def over_limit(self) -> bool:
        return self.remaining < 0


def quota_status(snapshot: Snapshot, limit: int) -> QuotaStatus:
    """Measure a snapshot's total tokens against ``limit``."""
    return QuotaStatus(limit=limit, used=snapshot.total_tokens)


def usage_style(percentage: float) -> str:
    """Rich style for a usage percentage: green, yellow, bright yellow, then red."""
    if percentage < 50.0:
        return "green"
    if percentage < 80.0:
        return "yellow"
    if percentage < 100.0:
        return "bright_yellow"
    return "bold red"
