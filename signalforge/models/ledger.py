"""
SignalForge - Ledger Model
==========================

Positions, trade events and the append-only account ledger.

The ledger is the backtest's output of record. Plotting, reporting and
statistics collaborators read it through ``to_frame()`` and
``trades_frame()``; entries are never mutated after append.

Author: SignalForge Team
Version: 1.0.0
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

import pandas as pd

from signalforge.enums import TradeSide


# =============================================================================
# POSITION
# =============================================================================

@dataclass
class Position:
    """
    Long position in one security.

    Attributes:
        symbol: Security identifier
        quantity: Units held (0 when flat)
        avg_cost: Quantity-weighted average fill price
    """
    symbol: str
    quantity: float = 0.0
    avg_cost: float = 0.0

    @property
    def is_flat(self) -> bool:
        """Check if nothing is held."""
        return self.quantity == 0

    def market_value(self, price: float) -> float:
        """Value of the position at ``price``."""
        if self.is_flat:
            return 0.0
        return self.quantity * price

    def add(self, quantity: float, price: float) -> None:
        """Increase the position and update the average cost."""
        if quantity <= 0:
            raise ValueError(f"Quantity to add must be positive, got {quantity}")
        total = self.quantity + quantity
        self.avg_cost = (self.quantity * self.avg_cost + quantity * price) / total
        self.quantity = total

    def close(self) -> Tuple[float, float]:
        """
        Flatten the position.

        Returns:
            Tuple of (quantity sold, average cost it was carried at)
        """
        closed = (self.quantity, self.avg_cost)
        self.quantity = 0.0
        self.avg_cost = 0.0
        return closed


# =============================================================================
# TRADE EVENT
# =============================================================================

@dataclass(frozen=True)
class TradeEvent:
    """A single executed buy or sell."""
    date: pd.Timestamp
    symbol: str
    side: TradeSide
    quantity: float
    price: float
    commission: float = 0.0
    realized_pnl: Optional[float] = None  # Sells only

    @property
    def notional(self) -> float:
        """Traded value before commission."""
        return self.quantity * self.price

    @property
    def cash_flow(self) -> float:
        """Signed cash impact (negative for buys)."""
        return -self.side.sign * self.notional - self.commission

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "date": self.date,
            "symbol": self.symbol,
            "side": self.side.value,
            "quantity": self.quantity,
            "price": self.price,
            "commission": self.commission,
            "notional": self.notional,
            "realized_pnl": self.realized_pnl
        }


# =============================================================================
# LEDGER
# =============================================================================

@dataclass(frozen=True)
class LedgerEntry:
    """
    Account state at the close of one calendar date.

    Attributes:
        date: Calendar date
        cash: Cash balance after the date's trades
        positions: Quantity held per security (snapshot)
        value: Cash plus marked-to-close positions
        trades: Trades executed on this date
        avg_costs: Average cost per security (snapshot, 0 when flat)
    """
    date: pd.Timestamp
    cash: float
    positions: Dict[str, float]
    value: float
    trades: Tuple[TradeEvent, ...] = ()
    avg_costs: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "date": self.date,
            "cash": self.cash,
            "positions": dict(self.positions),
            "avg_costs": dict(self.avg_costs),
            "value": self.value,
            "trades": [t.to_dict() for t in self.trades]
        }


@dataclass
class Ledger:
    """
    Append-only sequence of LedgerEntry objects in date order.

    Example:
        ```python
        ledger = result.ledger
        print(ledger.final_value)
        curve = ledger.to_frame()["value"]
        ```
    """
    _entries: List[LedgerEntry] = field(default_factory=list)

    def append(self, entry: LedgerEntry) -> None:
        """Append an entry; dates must be strictly increasing."""
        if self._entries and entry.date <= self._entries[-1].date:
            raise ValueError(
                f"Ledger dates must increase: {entry.date} after {self._entries[-1].date}"
            )
        self._entries.append(entry)

    def copy(self) -> "Ledger":
        # Entries are frozen, sharing them is safe
        return Ledger(list(self._entries))

    def __iter__(self) -> Iterator[LedgerEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> LedgerEntry:
        return self._entries[index]

    @property
    def entries(self) -> Tuple[LedgerEntry, ...]:
        """Read-only view of all entries."""
        return tuple(self._entries)

    @property
    def final(self) -> Optional[LedgerEntry]:
        """Last entry, the backtest's summary result."""
        return self._entries[-1] if self._entries else None

    @property
    def final_value(self) -> Optional[float]:
        """Account value at the last date."""
        return self._entries[-1].value if self._entries else None

    @property
    def trades(self) -> List[TradeEvent]:
        """All trades in execution order."""
        return [trade for entry in self._entries for trade in entry.trades]

    def to_frame(self) -> pd.DataFrame:
        """
        Ledger as a DataFrame indexed by date.

        Columns: ``cash``, ``value``, ``n_trades`` and, per security, the
        quantity held (``pos_<symbol>``) and its average cost
        (``avg_cost_<symbol>``).
        """
        if not self._entries:
            return pd.DataFrame(columns=["cash", "value", "n_trades"])

        rows = []
        for entry in self._entries:
            row = {"date": entry.date, "cash": entry.cash, "value": entry.value, "n_trades": len(entry.trades)}
            for symbol, quantity in entry.positions.items():
                row[f"pos_{symbol}"] = quantity
                row[f"avg_cost_{symbol}"] = entry.avg_costs.get(symbol, 0.0)
            rows.append(row)
        return pd.DataFrame(rows).set_index("date")

    def trades_frame(self) -> pd.DataFrame:
        """One row per executed trade."""
        columns = ["date", "symbol", "side", "quantity", "price", "commission", "notional", "realized_pnl"]
        return pd.DataFrame([t.to_dict() for t in self.trades], columns=columns)
