"""
registry.py - Approved collateral assets

The CollateralRegistry is fixed at construction: an insertion-ordered mapping
from each approved asset to its price feed and its transfer primitives.
There is no add or remove after construction.
"""

from __future__ import annotations
from typing import Dict, Iterator, List, Sequence, Tuple

from .core import (
    AssetTransfer, PriceOracle, FeedPrice,
    InvalidConfiguration, UnapprovedAsset,
)


class CollateralRegistry:
    """
    Ordered, immutable set of approved collateral assets.

    Example:
        registry = CollateralRegistry(
            ["WETH", "WBTC"],
            [feeds, feeds],
            [weth_token, wbtc_token],
        )
        registry.latest_price("WETH")  # (200000000000, 8)
    """

    def __init__(
        self,
        assets: Sequence[str],
        price_feeds: Sequence[PriceOracle],
        tokens: Sequence[AssetTransfer],
    ):
        """
        Args:
            assets: Approved asset identifiers, in enumeration order
            price_feeds: One price feed per asset (same length as assets)
            tokens: One transfer primitive per asset (same length as assets)

        Raises:
            InvalidConfiguration: on mismatched lengths, duplicate or empty assets
        """
        assets = list(assets)
        price_feeds = list(price_feeds)
        tokens = list(tokens)
        if len(assets) != len(price_feeds):
            raise InvalidConfiguration(
                f"Got {len(assets)} assets but {len(price_feeds)} price feeds"
            )
        if len(assets) != len(tokens):
            raise InvalidConfiguration(
                f"Got {len(assets)} assets but {len(tokens)} asset tokens"
            )

        self._feeds: Dict[str, PriceOracle] = {}
        self._tokens: Dict[str, AssetTransfer] = {}
        for asset, feed, token in zip(assets, price_feeds, tokens):
            if not asset or not asset.strip():
                raise InvalidConfiguration("Collateral asset identifier cannot be empty")
            if asset in self._feeds:
                raise InvalidConfiguration(f"Collateral asset {asset} listed twice")
            self._feeds[asset] = feed
            self._tokens[asset] = token

    @classmethod
    def from_pairs(
        cls,
        pairs: Sequence[Tuple[str, PriceOracle]],
        tokens: Sequence[AssetTransfer],
    ) -> CollateralRegistry:
        """Build a registry from ordered (asset, price_feed) pairs."""
        return cls([a for a, _ in pairs], [f for _, f in pairs], tokens)

    @property
    def assets(self) -> Tuple[str, ...]:
        """Approved assets in registration order."""
        return tuple(self._feeds)

    def is_approved(self, asset: str) -> bool:
        return asset in self._feeds

    def require(self, asset: str) -> None:
        """Raise UnapprovedAsset unless the asset is in the registry."""
        if asset not in self._feeds:
            raise UnapprovedAsset(asset)

    def price_feed(self, asset: str) -> PriceOracle:
        self.require(asset)
        return self._feeds[asset]

    def token(self, asset: str) -> AssetTransfer:
        self.require(asset)
        return self._tokens[asset]

    def tokens(self) -> List[AssetTransfer]:
        """Transfer primitives in registration order (duplicates kept)."""
        return list(self._tokens.values())

    def latest_price(self, asset: str) -> FeedPrice:
        """Fetch (price, decimals) for an approved asset from its feed."""
        return self.price_feed(asset).latest_price(asset)

    def __contains__(self, asset: object) -> bool:
        return asset in self._feeds

    def __iter__(self) -> Iterator[str]:
        return iter(self.assets)

    def __len__(self) -> int:
        return len(self._feeds)

    def __repr__(self) -> str:
        return f"CollateralRegistry({', '.join(self._feeds)})"
