# tests/catalog/test_model_catalog.py
"""
Tests for the model catalog and the packaged default models.
"""

import pytest

from llmrelay.catalog import DEFAULT_MODELS, ModelCatalog, default_catalog
from llmrelay.exceptions import ConfigError


# =============================================================================
# DEFAULT CATALOG
# =============================================================================


class TestDefaultCatalog:
    """Tests for the packaged default catalog."""

    def test_has_ten_models(self) -> None:
        assert len(default_catalog()) == 10
        assert len(DEFAULT_MODELS) == 10

    def test_ids_are_unique(self) -> None:
        ids = [m.id for m in DEFAULT_MODELS]
        assert len(ids) == len(set(ids))

    def test_tiers_span_one_to_five(self) -> None:
        assert {m.priority_tier for m in DEFAULT_MODELS} == {1, 2, 3, 4, 5}

    def test_known_prices(self) -> None:
        catalog = default_catalog()
        opus = catalog.by_id("anthropic/claude-3-opus")
        haiku = catalog.by_id("anthropic/claude-3-haiku")
        assert opus.pricing.input_per_million == 15.0
        assert opus.pricing.output_per_million == 75.0
        assert haiku.pricing.input_per_million == 0.25

    def test_gemini_has_million_token_context(self) -> None:
        gemini = default_catalog().by_id("google/gemini-pro-1.5")
        assert gemini.context_length == 1_000_000


# =============================================================================
# LOOKUPS
# =============================================================================


class TestModelCatalog:
    """Tests for catalog construction and lookups."""

    def test_by_id_missing_returns_none(self) -> None:
        assert default_catalog().by_id("nobody/nothing") is None

    def test_by_tier_keeps_catalog_order(self) -> None:
        tier_one = default_catalog().by_tier(1)
        assert [m.id for m in tier_one] == ["anthropic/claude-3-opus", "openai/gpt-4-turbo"]

    def test_by_tier_without_matches(self) -> None:
        assert default_catalog().by_tier(9) == []

    def test_by_use_case_is_case_insensitive_substring(self) -> None:
        matches = default_catalog().by_use_case("VOICE")
        assert [m.id for m in matches] == ["anthropic/claude-3-haiku"]

    def test_contains_and_iter(self, three_model_catalog) -> None:
        assert "m2" in three_model_catalog
        assert "m9" not in three_model_catalog
        assert [m.id for m in three_model_catalog] == ["m1", "m2", "m3"]

    def test_all_returns_copy(self, three_model_catalog) -> None:
        models = three_model_catalog.all()
        models.clear()
        assert len(three_model_catalog) == 3

    def test_duplicate_ids_rejected(self, model_factory) -> None:
        with pytest.raises(ConfigError, match="Duplicate"):
            ModelCatalog([model_factory("dup"), model_factory("dup", tier=1)])

    def test_available_filters_catalog_flag(self, model_factory) -> None:
        catalog = ModelCatalog([model_factory("on"), model_factory("off", available=False)])
        assert [m.id for m in catalog.available()] == ["on"]

    def test_empty_catalog_allowed(self) -> None:
        catalog = ModelCatalog([])
        assert len(catalog) == 0
        assert catalog.all() == []


class TestCatalogFromConfig:
    """Tests for building a catalog from plain dictionaries."""

    def test_valid_entries(self) -> None:
        catalog = ModelCatalog.from_config(
            [
                {
                    "id": "local/small",
                    "context_length": 4096,
                    "pricing": {"input_per_million": 0.1, "output_per_million": 0.2},
                    "priority_tier": 2,
                    "capabilities": {"speed": 0.9},
                }
            ]
        )
        model = catalog.by_id("local/small")
        assert model.priority_tier == 2
        assert model.capabilities.speed == 0.9

    def test_invalid_entry_raises_config_error(self) -> None:
        with pytest.raises(ConfigError, match="#0"):
            ModelCatalog.from_config([{"id": "broken", "context_length": 10}])
