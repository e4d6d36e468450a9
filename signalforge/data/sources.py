"""
SignalForge - Data Sources
==========================

Read-only collaborators that supply canonical Security Series.

A data source is shared by every container built from it (including all
optimizer trials) and must never be mutated by the engine: every ``load``
returns a fresh canonical copy.

Author: SignalForge Team
Version: 1.0.0
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Union

import pandas as pd

from signalforge.data.validation import canonicalize_series
from signalforge.exceptions import UnknownSecurityError

logger = logging.getLogger(__name__)


class BaseDataSource(ABC):
    """
    Abstract base class for all data sources.

    Subclasses must implement:
    - _fetch: raw frame for a symbol, or None when unavailable
    - available: identifiers the source can serve
    """

    name: str = "BaseDataSource"

    def load(self, symbol: str) -> pd.DataFrame:
        """
        Load the canonical series for ``symbol``.

        Raises:
            UnknownSecurityError: If the source has no series for the symbol
            InvalidDataError: If the raw series cannot be canonicalized
        """
        raw = self._fetch(symbol)
        if raw is None:
            raise UnknownSecurityError(symbol=symbol, source=self.name)

        frame = canonicalize_series(raw, symbol)
        logger.debug(f"{self.name}: loaded {len(frame)} rows for {symbol}")
        return frame

    @abstractmethod
    def _fetch(self, symbol: str) -> Optional[pd.DataFrame]:
        """Return the raw frame for a symbol, or None."""
        raise NotImplementedError

    @abstractmethod
    def available(self) -> List[str]:
        """List identifiers this source can serve."""
        raise NotImplementedError

    def __contains__(self, symbol: object) -> bool:
        return symbol in self.available()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(symbols={len(self.available())})>"


class InMemoryDataSource(BaseDataSource):
    """
    Source backed by a mapping of identifier to DataFrame.

    Example:
        ```python
        source = InMemoryDataSource({"AAA": frame_a, "BBB": frame_b})
        container = initialize(["AAA", "BBB"], source)
        ```
    """

    name = "memory"

    def __init__(self, frames: Mapping[str, pd.DataFrame]):
        self._frames: Dict[str, pd.DataFrame] = dict(frames)

    def _fetch(self, symbol: str) -> Optional[pd.DataFrame]:
        return self._frames.get(symbol)

    def available(self) -> List[str]:
        return sorted(self._frames)


class CSVDataSource(BaseDataSource):
    """
    Source reading one CSV file per security from a directory.

    The file must contain a date column plus OPEN/HIGH/LOW/CLOSE/VOLUME
    (any case).
    """

    name = "csv"

    def __init__(self, directory: Union[str, Path], pattern: str = "{symbol}.csv"):
        self.directory = Path(directory)
        self.pattern = pattern

    def _path(self, symbol: str) -> Path:
        return self.directory / self.pattern.format(symbol=symbol)

    def _fetch(self, symbol: str) -> Optional[pd.DataFrame]:
        path = self._path(symbol)
        if not path.is_file():
            return None
        return pd.read_csv(path)

    def available(self) -> List[str]:
        if not self.directory.is_dir():
            return []
        prefix, _, suffix = self.pattern.partition("{symbol}")
        symbols = []
        for path in sorted(self.directory.iterdir()):
            name = path.name
            if path.is_file() and name.startswith(prefix) and name.endswith(suffix):
                symbols.append(name[len(prefix):len(name) - len(suffix)])
        return symbols


def as_data_source(source: Union[BaseDataSource, Mapping[str, pd.DataFrame]]) -> BaseDataSource:
    """Wrap a plain mapping in an InMemoryDataSource."""
    if isinstance(source, BaseDataSource):
        return source
    if isinstance(source, Mapping):
        return InMemoryDataSource(source)
    raise TypeError(f"Expected a data source or a mapping of frames, got {type(source).__name__}")
