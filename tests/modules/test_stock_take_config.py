"""Tests for StockTakeConfig."""

import pytest

from pos_config import get_active_config
from pos_modules.stock_take.config import StockTakeConfig


class TestStockTakeConfig:

    def test_defaults(self):
        config = StockTakeConfig.with_defaults()

        assert config.snapshot_include_zero_stock is True
        assert config.require_cancel_confirmation is True
        assert config.allow_concurrent_sessions_per_location is False
        assert config.record_stock_movements is True
        assert config.record_completion_notification is True
        assert config.default_page_size == 20
        assert config.max_page_size == 100

    def test_from_dict(self):
        config = StockTakeConfig.from_dict({
            "snapshot_include_zero_stock": False,
            "default_page_size": 5,
        })

        assert config.snapshot_include_zero_stock is False
        assert config.default_page_size == 5

    def test_from_dict_unknown_key(self):
        with pytest.raises(TypeError):
            StockTakeConfig.from_dict({"no_such_setting": True})

    def test_non_bool_flag_rejected(self):
        with pytest.raises(ValueError, match="boolean"):
            StockTakeConfig(record_stock_movements="yes")

    @pytest.mark.parametrize("kwargs", [
        {"default_page_size": 0},
        {"max_page_size": 0},
        {"default_page_size": 50, "max_page_size": 10},
    ])
    def test_invalid_paging(self, kwargs):
        with pytest.raises(ValueError):
            StockTakeConfig(**kwargs)

    @pytest.mark.parametrize("requested, expected", [
        (None, 20),
        (0, 20),
        (-4, 20),
        (7, 7),
        (500, 100),
    ])
    def test_page_limit(self, requested, expected):
        assert StockTakeConfig().page_limit(requested) == expected

    def test_shipped_config_set_builds(self):
        settings = get_active_config().module_settings("stock_take")

        config = StockTakeConfig.from_dict(settings)

        assert config == StockTakeConfig()
