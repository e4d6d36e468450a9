"""
SignalForge - Enumerations
==========================

Enum definitions shared by the pipeline stages.

Includes:
- Signal direction and compiled trade decisions
- Trade sides recorded in the ledger
- Position sizing and fill configuration

Author: SignalForge Team
Version: 1.0.0
"""

from enum import Enum


# =============================================================================
# SIGNAL ENUMS
# =============================================================================

class Direction(str, Enum):
    """
    Trade direction attached to a signal.

    A true BUY signal asks for a long position, a true SELL signal asks to
    liquidate it.
    """
    BUY = "buy"
    SELL = "sell"

    @classmethod
    def parse(cls, value: "Direction | str") -> "Direction":
        """Accept an enum member or its (case-insensitive) value."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"direction must be 'buy' or 'sell', got {value!r}") from None


class TradeDecision(str, Enum):
    """
    Compiled per-date decision for one security.

    Exactly one decision exists per security per date.
    """
    BUY = "buy"
    SELL = "sell"
    HOLD = "hold"


# =============================================================================
# EXECUTION ENUMS
# =============================================================================

class TradeSide(str, Enum):
    """Side of an executed trade."""
    BUY = "buy"
    SELL = "sell"

    @property
    def sign(self) -> int:
        """Get the sign for calculations (+1 for buy, -1 for sell)."""
        return 1 if self == TradeSide.BUY else -1


class AllocationMode(str, Enum):
    """
    Position sizing policy for buy decisions.

    EQUAL_WEIGHT splits available cash equally among the day's buyers,
    FIXED_FRACTION deploys a fixed share of available cash per buy and
    UNIVERSE_WEIGHT targets an equal slice of account value per universe member.
    """
    EQUAL_WEIGHT = "equal_weight"
    FIXED_FRACTION = "fixed_fraction"
    UNIVERSE_WEIGHT = "universe_weight"


class FillMode(str, Enum):
    """
    Fill mode enumeration.

    Defines which price a decision is executed at.
    """
    CLOSE = "close"             # Fill at the decision bar's close
    NEXT_OPEN = "next_open"     # Fill at the next bar's open

    @property
    def price_column(self) -> str:
        """Column of the security series used as fill price."""
        return "CLOSE" if self == FillMode.CLOSE else "OPEN"
