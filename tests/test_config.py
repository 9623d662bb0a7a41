import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
import pytest
from pydantic import ValidationError
from pricing.config import (
    CONFIG_ENV_VAR,
    PricingConfig,
    TaxConfig,
    get_config,
    load_config,
)
from pricing.delivery import DeliveryFeeCalculator
from pricing.domain import DeliveryContext, Order, OrderItem, PricingContext, Profile
from pricing.errors import ConfigError
from pricing.tax import TaxCalculator
from pricing.total import total


@pytest.fixture
def fresh_config_cache():
    get_config.cache_clear()
    yield
    get_config.cache_clear()


def test_defaults():
    config = PricingConfig()

    assert config.discounts.vip_percent == 5
    assert config.discounts.volume_rebates_cents == {12: 10, 24: 25}
    assert config.tax.rates_bps == {"local": 800, "outer": 600}
    assert config.delivery.zone_fees_cents["local"] < config.delivery.zone_fees_cents["outer"]
    assert config.delivery.free_threshold_cents == 4000
    assert config.delivery.rush_surcharge_cents == 299


def test_config_is_frozen():
    config = PricingConfig()
    with pytest.raises(ValidationError):
        config.delivery.rush_surcharge_cents = 0


@pytest.mark.parametrize(
    "table, key",
    [
        (lambda c: c.delivery.zone_fees_cents, "local"),
        (lambda c: c.tax.rates_bps, "outer"),
        (lambda c: c.discounts.volume_rebates_cents, 12),
    ],
)
def test_config_tables_are_read_only(table, key):
    """Таблицы зон и упаковок нельзя поменять на месте"""
    with pytest.raises(TypeError):
        table(PricingConfig())[key] = 0


def test_shared_config_cannot_be_changed_between_orders(fresh_config_cache):
    order = Order(
        items=(
            OrderItem(
                kind="hot",
                sku="P12-POTATO",
                title="Pierogi",
                filling="potato",
                qty=1,
                unit_price_cents=1500,
            ),
        )
    )
    ctx = PricingContext(
        profile=Profile(tier="regular"), delivery=DeliveryContext(zone="local")
    )
    before = total(order, ctx)

    with pytest.raises(TypeError):
        get_config().delivery.zone_fees_cents["local"] = 0

    assert total(order, ctx) == before == 2120


def test_load_config_without_path_gives_defaults():
    assert load_config() == PricingConfig()


def test_load_config_merges_sparse_toml(tmp_path):
    """В TOML только переопределения, остальное — по умолчанию"""
    path = tmp_path / "pricing.toml"
    path.write_text(
        "[tax.rates_bps]\nlocal = 875\n\n"
        "[discounts.volume_rebates_cents]\n12 = 15\n24 = 30\n\n"
        "[delivery]\nfree_threshold_cents = 5000\n",
        encoding="utf-8",
    )
    config = load_config(path)

    assert config.tax.rates_bps["local"] == 875
    assert config.tax.rates_bps["outer"] == 600
    assert config.discounts.volume_rebates_cents == {12: 15, 24: 30}
    assert config.delivery.free_threshold_cents == 5000
    assert config.delivery.rush_surcharge_cents == 299


def test_partial_zone_table_keeps_default_zones(tmp_path):
    """Переопределение одной зоны не удаляет остальные"""
    path = tmp_path / "pricing.toml"
    path.write_text(
        "[tax.rates_bps]\nlocal = 875\n\n[delivery.zone_fees_cents]\nouter = 1200\n",
        encoding="utf-8",
    )
    config = load_config(path)
    order = Order(
        items=(
            OrderItem(
                kind="hot",
                sku="P6-POTATO",
                title="Pierogi",
                filling="potato",
                qty=10,
                unit_price_cents=100,
            ),
        )
    )
    regular = Profile(tier="regular")

    assert config.tax.rates_bps == {"local": 875, "outer": 600}
    assert TaxCalculator(config).tax(order, DeliveryContext(zone="outer")) == 60
    assert config.delivery.zone_fees_cents == {"local": 500, "outer": 1200}
    assert DeliveryFeeCalculator(config)(order, DeliveryContext(zone="local"), regular) == 500


def test_partial_rebate_table_keeps_other_sizes(tmp_path):
    path = tmp_path / "pricing.toml"
    path.write_text("[discounts.volume_rebates_cents]\n24 = 40\n", encoding="utf-8")

    assert load_config(path).discounts.volume_rebates_cents == {12: 10, 24: 40}


def test_constructor_tables_also_keep_defaults():
    config = PricingConfig(tax=TaxConfig(rates_bps={"outer": 0}))
    assert config.tax.rate_for("local") == 800
    assert config.tax.rate_for("outer") == 0


def test_invalid_toml_raises_config_error(tmp_path):
    path = tmp_path / "broken.toml"
    path.write_text("[delivery\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="Invalid TOML"):
        load_config(path)


def test_invalid_values_raise_config_error(tmp_path):
    path = tmp_path / "negative.toml"
    path.write_text("[delivery.zone_fees_cents]\nlocal = -1\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="Invalid pricing config"):
        load_config(path)


def test_missing_file_raises_config_error(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "absent.toml")


def test_get_config_is_loaded_once(fresh_config_cache):
    assert get_config() is get_config()


def test_get_config_reads_env_var(tmp_path, monkeypatch, fresh_config_cache):
    path = tmp_path / "pricing.toml"
    path.write_text("[delivery]\nrush_surcharge_cents = 350\n", encoding="utf-8")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

    assert get_config().delivery.rush_surcharge_cents == 350
