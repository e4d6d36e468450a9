"""
SignalForge - Parallel Helpers
==============================

Per-security fan-out used by the indicator and signal stages.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, Iterable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def map_securities(
    func: Callable[[str], T],
    symbols: Iterable[str],
    parallel: bool = False,
    max_workers: Optional[int] = None
) -> Dict[str, T]:
    """
    Apply ``func`` to every symbol and collect results in symbol order.

    With ``parallel`` the calls run on a thread pool; all of them finish
    before this returns. If any call raises, the error of the first failing
    symbol (in the given order) is re-raised so failures are reproducible.

    Args:
        func: Per-security computation
        symbols: Security identifiers
        parallel: Use a thread pool
        max_workers: Pool size

    Returns:
        Dict mapping symbol to result, ordered like ``symbols``
    """
    symbols = list(symbols)

    if not parallel or len(symbols) < 2:
        return {symbol: func(symbol) for symbol in symbols}

    results: Dict[str, T] = {}
    errors: Dict[str, BaseException] = {}

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {executor.submit(func, symbol): symbol for symbol in symbols}

        for future in as_completed(futures):
            symbol = futures[future]
            try:
                results[symbol] = future.result()
            except Exception as e:
                errors[symbol] = e

    for symbol in symbols:
        if symbol in errors:
            logger.debug(f"{len(errors)} of {len(symbols)} securities failed, raising for {symbol}")
            raise errors[symbol]

    return {symbol: results[symbol] for symbol in symbols}
