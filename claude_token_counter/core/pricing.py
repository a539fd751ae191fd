"""
Pricing calculations and rate management.

Turns aggregated token counts into an estimated dollar cost.
"""

from dataclasses import dataclass
from typing import Dict
from decimal import Decimal, ROUND_UP

from claude_token_counter.local.models import Snapshot

TOKENS_PER_MILLION = Decimal("1000000")


@dataclass(frozen=True)
class CategoryRates:
    """Dollar cost per million tokens, one rate per token category."""
    input_per_mtok: Decimal
    output_per_mtok: Decimal
    cache_creation_per_mtok: Decimal  # Cache write
    cache_read_per_mtok: Decimal

    def __post_init__(self):
        """Validate that no rate is negative."""
        for name in ("input_per_mtok", "output_per_mtok",
                     "cache_creation_per_mtok", "cache_read_per_mtok"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")


@dataclass(frozen=True)
class PricingTable:
    """Fixed pricing table keyed by model family."""
    prices: Dict[str, CategoryRates]

    def get_rates(self, family: str) -> CategoryRates:
        """Get rates for a model family.

        Args:
            family: Model family name, e.g. "sonnet"

        Returns:
            CategoryRates for the family

        Raises:
            ValueError: If the family is not in the table
        """
        if family not in self.prices:
            raise ValueError(f"Unsupported model family: {family}")
        return self.prices[family]


@dataclass(frozen=True)
class CostEstimate:
    """Estimated spend for one snapshot, in dollars."""
    input_cost: Decimal
    output_cost: Decimal
    cache_creation_cost: Decimal
    cache_read_cost: Decimal

    @property
    def total_cost(self) -> Decimal:
        return (
            self.input_cost
            + self.output_cost
            + self.cache_creation_cost
            + self.cache_read_cost
        )


PRICING_TABLE = PricingTable({
    "sonnet": CategoryRates(
        input_per_mtok=Decimal("3.00"),
        output_per_mtok=Decimal("15.00"),
        cache_creation_per_mtok=Decimal("3.75"),
        cache_read_per_mtok=Decimal("0.30")
    ),
    "opus": CategoryRates(
        input_per_mtok=Decimal("15.00"),
        output_per_mtok=Decimal("75.00"),
        cache_creation_per_mtok=Decimal("18.75"),
        cache_read_per_mtok=Decimal("1.50")
    ),
    "haiku": CategoryRates(
        input_per_mtok=Decimal("0.80"),
        output_per_mtok=Decimal("4.00"),
        cache_creation_per_mtok=Decimal("1.00"),
        cache_read_per_mtok=Decimal("0.08")
    )
})

DEFAULT_RATES = PRICING_TABLE.get_rates("sonnet")


def _category_cost(tokens: int, rate: Decimal) -> Decimal:
    return (Decimal(tokens) / TOKENS_PER_MILLION) * rate


def estimate_cost(snapshot: Snapshot, rates: CategoryRates = DEFAULT_RATES) -> CostEstimate:
    """Estimate the cost of a snapshot's token totals.

    Exact Decimal arithmetic; rounding is left to presentation.

    Args:
        snapshot: Aggregated token totals
        rates: Per-million-token rates for each category

    Returns:
        CostEstimate with one amount per category
    """
    return CostEstimate(
        input_cost=_category_cost(snapshot.total_input, rates.input_per_mtok),
        output_cost=_category_cost(snapshot.total_output, rates.output_per_mtok),
        cache_creation_cost=_category_cost(snapshot.total_cache_creation, rates.cache_creation_per_mtok),
        cache_read_cost=_category_cost(snapshot.total_cache_read, rates.cache_read_per_mtok),
    )


def format_cost(amount: Decimal) -> str:
    """Format a dollar amount rounded UP to the cent."""
    rounded = amount.quantize(Decimal("0.01"), rounding=ROUND_UP)
    return f"${rounded:,.2f}"
