"""
test_registry.py - Unit tests for CollateralRegistry

Tests:
- Construction from parallel lists and from pairs
- Configuration errors (length mismatch, duplicates, empty ids)
- Lookup of feeds, tokens and prices
- Ordering and membership
"""

import pytest

from stableledger import (
    CollateralRegistry,
    StaticPriceFeed,
    TokenLedger,
    InvalidConfiguration,
    UnapprovedAsset,
    NotAllowedAsset,
    PriceUnavailable,
    to_wei,
)


@pytest.fixture
def tokens():
    return [
        TokenLedger("WETH", "Wrapped Ether", owner="deployer", verbose=False),
        TokenLedger("WBTC", "Wrapped Bitcoin", owner="deployer", verbose=False),
    ]


class TestConstruction:

    def test_assets_in_registration_order(self, feed, tokens):
        registry = CollateralRegistry(["WETH", "WBTC"], [feed, feed], tokens)
        assert registry.assets == ("WETH", "WBTC")
        assert list(registry) == ["WETH", "WBTC"]
        assert len(registry) == 2

    def test_from_pairs(self, feed, tokens):
        registry = CollateralRegistry.from_pairs([("WBTC", feed), ("WETH", feed)], tokens[::-1])
        assert registry.assets == ("WBTC", "WETH")
        assert registry.token("WBTC") is tokens[1]

    def test_empty_registry_is_allowed(self):
        registry = CollateralRegistry([], [], [])
        assert registry.assets == ()
        assert len(registry) == 0

    def test_feed_count_mismatch(self, feed, tokens):
        with pytest.raises(InvalidConfiguration, match="price feeds"):
            CollateralRegistry(["WETH", "WBTC"], [feed], tokens)

    def test_token_count_mismatch(self, feed, tokens):
        with pytest.raises(InvalidConfiguration, match="asset tokens"):
            CollateralRegistry(["WETH", "WBTC"], [feed, feed], tokens[:1])

    def test_duplicate_asset(self, feed, tokens):
        with pytest.raises(InvalidConfiguration, match="twice"):
            CollateralRegistry(["WETH", "WETH"], [feed, feed], tokens)

    def test_empty_asset_id(self, feed, tokens):
        with pytest.raises(InvalidConfiguration):
            CollateralRegistry(["  "], [feed], tokens[:1])


class TestLookup:

    @pytest.fixture
    def registry(self, feed, tokens):
        return CollateralRegistry(["WETH", "WBTC"], [feed, feed], tokens)

    def test_membership(self, registry):
        assert "WETH" in registry
        assert "DOGE" not in registry
        assert registry.is_approved("WBTC")
        assert not registry.is_approved("DOGE")

    def test_require_unapproved(self, registry):
        with pytest.raises(UnapprovedAsset) as exc_info:
            registry.require("DOGE")
        assert exc_info.value.asset == "DOGE"

    def test_not_allowed_asset_is_same_error(self):
        assert NotAllowedAsset is UnapprovedAsset

    def test_feed_and_token_lookup(self, registry, feed, tokens):
        assert registry.price_feed("WETH") is feed
        assert registry.token("WBTC") is tokens[1]
        assert registry.tokens() == tokens

    def test_unapproved_lookup_raises(self, registry):
        with pytest.raises(UnapprovedAsset):
            registry.price_feed("DOGE")
        with pytest.raises(UnapprovedAsset):
            registry.token("DOGE")

    def test_latest_price(self, registry):
        assert registry.latest_price("WETH") == (to_wei(2000, 8), 8)

    def test_latest_price_missing_from_feed(self, tokens):
        registry = CollateralRegistry(["LINK"], [StaticPriceFeed({})], tokens[:1])
        with pytest.raises(PriceUnavailable):
            registry.latest_price("LINK")

    def test_repr(self, registry):
        assert repr(registry) == "CollateralRegistry(WETH, WBTC)"
