"""
pricing_source.py - Price feeds for collateral valuation

Provides the PriceOracle implementations the RiskEngine reads from.

Classes:
- StaticPriceFeed: one current round per asset, updated explicitly
- TimeSeriesPriceFeed: historical observations, answers as of a clock time
- CheckedPriceFeed: wraps another feed and rejects stale rounds

Every feed answers with a raw integer price and its decimal precision,
e.g. (2000_00000000, 8) for $2000 on an 8-decimal feed.
"""

from __future__ import annotations
from bisect import bisect_right
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Tuple

from .core import (
    DEFAULT_FEED_DECIMALS, ORACLE_TIMEOUT,
    FeedPrice, PriceRound,
    PriceUnavailable, StalePrice,
)


Clock = Callable[[], datetime]

_EPOCH = datetime(1970, 1, 1)


class StaticPriceFeed:
    """
    Price feed holding one current round per asset.

    Rounds only change through update_answer(); there is no notion of time
    beyond the updated_at stamp recorded on each round.

    Example:
        feed = StaticPriceFeed({"WETH": 2000 * 10**8, "WBTC": 1000 * 10**8})
        feed.latest_price("WETH")  # (200000000000, 8)
        feed.update_answer("WETH", 18 * 10**8)
    """

    def __init__(
        self,
        prices: Dict[str, int],
        decimals: int = DEFAULT_FEED_DECIMALS,
        updated_at: Optional[datetime] = None,
    ):
        """
        Args:
            prices: asset -> raw answer at `decimals` precision
            decimals: Precision of every answer in this feed
            updated_at: Timestamp stamped on the initial rounds (default: 1970-01-01)
        """
        self.decimals = decimals
        self._rounds: Dict[str, PriceRound] = {}
        for asset, answer in prices.items():
            self._rounds[asset] = PriceRound(answer, decimals, updated_at or _EPOCH, 1)

    def latest_round(self, asset: str) -> PriceRound:
        if asset not in self._rounds:
            raise PriceUnavailable(f"No price for {asset}")
        return self._rounds[asset]

    def latest_price(self, asset: str) -> FeedPrice:
        round_ = self.latest_round(asset)
        return round_.answer, round_.decimals

    def update_answer(self, asset: str, answer: int, updated_at: Optional[datetime] = None) -> PriceRound:
        """Publish a new round for `asset`."""
        previous = self._rounds.get(asset)
        round_id = previous.round_id + 1 if previous else 1
        stamp = updated_at or (previous.updated_at if previous else _EPOCH)
        self._rounds[asset] = PriceRound(answer, self.decimals, stamp, round_id)
        return self._rounds[asset]

    def __repr__(self):
        return f"StaticPriceFeed({len(self._rounds)} assets, decimals={self.decimals})"


class TimeSeriesPriceFeed:
    """
    Price feed with time-varying prices.

    Stores historical observations and answers with the most recent one at or
    before the clock's current time. Without a clock, the latest observation
    is returned.

    Each observation keeps the round id it was given when recorded: the
    initial path is numbered 1..n in timestamp order and every `add_price`
    takes the next id, so backfilling an earlier observation never renumbers
    existing rounds.

    Example:
        feed = TimeSeriesPriceFeed({
            "WETH": [(t0, 2000 * 10**8), (t1, 1800 * 10**8)],
        }, clock=lambda: now)
    """

    def __init__(
        self,
        price_paths: Optional[Dict[str, List[Tuple[datetime, int]]]] = None,
        decimals: int = DEFAULT_FEED_DECIMALS,
        clock: Optional[Clock] = None,
    ):
        self.decimals = decimals
        self.clock = clock
        # asset -> [(timestamp, answer, round_id)] in timestamp order
        self.price_history: Dict[str, List[Tuple[datetime, int, int]]] = {}
        if price_paths:
            for asset, path in price_paths.items():
                if not path:
                    continue
                ordered = sorted(path, key=lambda x: x[0])
                self.price_history[asset] = [
                    (ts, answer, round_id)
                    for round_id, (ts, answer) in enumerate(ordered, start=1)
                ]

    def add_price(self, asset: str, timestamp: datetime, answer: int) -> None:
        """Add an observation, keeping history in timestamp order."""
        history = self.price_history.setdefault(asset, [])
        round_id = max((r for _, _, r in history), default=0) + 1
        history.append((timestamp, answer, round_id))
        history.sort(key=lambda x: x[0])

    def latest_round(self, asset: str) -> PriceRound:
        """
        Observation at or before the clock time.

        Raises:
            PriceUnavailable: if there is no observation at or before that time.
        """
        history = self.price_history.get(asset)
        if not history:
            raise PriceUnavailable(f"No price history for {asset}")

        if self.clock is None:
            idx = len(history)
        else:
            timestamps = [ts for ts, _, _ in history]
            idx = bisect_right(timestamps, self.clock())
        if idx == 0:
            raise PriceUnavailable(f"No price for {asset} at or before {self.clock()}")

        timestamp, answer, round_id = history[idx - 1]
        return PriceRound(answer, self.decimals, timestamp, round_id)

    def latest_price(self, asset: str) -> FeedPrice:
        round_ = self.latest_round(asset)
        return round_.answer, round_.decimals

    def get_all_timestamps(self, asset: Optional[str] = None) -> List[datetime]:
        if asset:
            return [ts for ts, _, _ in self.price_history.get(asset, [])]
        all_times = set()
        for path in self.price_history.values():
            all_times.update(ts for ts, _, _ in path)
        return sorted(all_times)

    def __repr__(self):
        total = sum(len(h) for h in self.price_history.values())
        return f"TimeSeriesPriceFeed({len(self.price_history)} assets, {total} observations)"


class CheckedPriceFeed:
    """
    Staleness guard around another feed.

    A round whose updated_at is more than `timeout` before the clock time is
    rejected with StalePrice, which aborts any engine operation reading it.
    """

    def __init__(self, feed, clock: Clock, timeout: timedelta = ORACLE_TIMEOUT):
        """
        Args:
            feed: Any feed exposing latest_round(asset) -> PriceRound
            clock: Returns the current time
            timeout: Maximum accepted age of a round (default: 3 hours)
        """
        self.feed = feed
        self.clock = clock
        self.timeout = timeout

    def latest_round(self, asset: str) -> PriceRound:
        round_ = self.feed.latest_round(asset)
        age = self.clock() - round_.updated_at
        if age > self.timeout:
            raise StalePrice(
                f"Price for {asset} is {age} old (round {round_.round_id}), limit {self.timeout}"
            )
        return round_

    def latest_price(self, asset: str) -> FeedPrice:
        round_ = self.latest_round(asset)
        return round_.answer, round_.decimals

    def __repr__(self):
        return f"CheckedPriceFeed({self.feed!r}, timeout={self.timeout})"
