"""Конфигурация тарифов: pydantic-модели с зашитыми значениями по умолчанию.

TOML-файл содержит только переопределения; частичные таблицы зон
и упаковок дополняют значения по умолчанию, например:

    [tax.rates_bps]
    local = 875

    [delivery]
    free_threshold_cents = 5000

Все суммы — целые центы, ставки — базисные пункты (1% = 100 bps).
"""

from __future__ import annotations

import os
import tomllib
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigError

BPS = 10_000
CONFIG_ENV_VAR = "PRICING_CONFIG"

DEFAULT_VOLUME_REBATES_CENTS = {12: 10, 24: 25}
DEFAULT_TAX_RATES_BPS = {"local": 800, "outer": 600}
DEFAULT_ZONE_FEES_CENTS = {"local": 500, "outer": 900}


def _over_defaults(defaults: Dict[Any, int], value: Any, key=str) -> Any:
    """Частичная таблица дополняет значения по умолчанию, а не заменяет их"""
    if not isinstance(value, Mapping):
        return value
    return {**defaults, **{key(k): v for k, v in value.items()}}


class DiscountConfig(BaseModel):
    """[discounts] section."""

    model_config = {"frozen": True}

    vip_percent: int = Field(default=5, ge=0, le=100)
    # размер упаковки -> скидка за единицу количества, центы
    volume_rebates_cents: Mapping[int, int] = Field(
        default_factory=lambda: dict(DEFAULT_VOLUME_REBATES_CENTS),
        validate_default=True,
    )
    first10_percent: int = Field(default=10, ge=0, le=100)
    bogo_pack_size: int = Field(default=6, gt=0)
    # сколько единиц более дешёвой шестёрки в паре отдаётся бесплатно
    bogo_free_units: int = Field(default=1, ge=0)

    @field_validator("volume_rebates_cents", mode="before")
    @classmethod
    def _merge_rebates(cls, value: Any) -> Any:
        # ключи TOML-таблицы приходят строками
        return _over_defaults(DEFAULT_VOLUME_REBATES_CENTS, value, key=int)

    @field_validator("volume_rebates_cents")
    @classmethod
    def _freeze_rebates(cls, value: Mapping[int, int]) -> Mapping[int, int]:
        if any(qty <= 0 or rebate < 0 for qty, rebate in value.items()):
            raise ValueError("volume rebates need positive sizes and non-negative amounts")
        return MappingProxyType(dict(value))


class TaxConfig(BaseModel):
    """[tax] section."""

    model_config = {"frozen": True}

    rates_bps: Mapping[str, int] = Field(
        default_factory=lambda: dict(DEFAULT_TAX_RATES_BPS),
        validate_default=True,
    )

    @field_validator("rates_bps", mode="before")
    @classmethod
    def _merge_rates(cls, value: Any) -> Any:
        return _over_defaults(DEFAULT_TAX_RATES_BPS, value)

    @field_validator("rates_bps")
    @classmethod
    def _freeze_rates(cls, value: Mapping[str, int]) -> Mapping[str, int]:
        if any(not 0 <= rate <= BPS for rate in value.values()):
            raise ValueError("tax rates must be within 0..10000 bps")
        return MappingProxyType(dict(value))

    def rate_for(self, zone: str) -> int:
        try:
            return self.rates_bps[zone]
        except KeyError:
            raise ValueError(f"Unknown delivery zone '{zone}'") from None


class DeliveryConfig(BaseModel):
    """[delivery] section."""

    model_config = {"frozen": True}

    zone_fees_cents: Mapping[str, int] = Field(
        default_factory=lambda: dict(DEFAULT_ZONE_FEES_CENTS),
        validate_default=True,
    )
    free_threshold_cents: int = Field(default=4000, ge=0)
    rush_surcharge_cents: int = Field(default=299, ge=0)
    vip_waives_base_fee: bool = True

    @field_validator("zone_fees_cents", mode="before")
    @classmethod
    def _merge_fees(cls, value: Any) -> Any:
        return _over_defaults(DEFAULT_ZONE_FEES_CENTS, value)

    @field_validator("zone_fees_cents")
    @classmethod
    def _freeze_fees(cls, value: Mapping[str, int]) -> Mapping[str, int]:
        if any(fee < 0 for fee in value.values()):
            raise ValueError("zone fees must be non-negative")
        return MappingProxyType(dict(value))

    def base_fee_for(self, zone: str) -> int:
        try:
            return self.zone_fees_cents[zone]
        except KeyError:
            raise ValueError(f"Unknown delivery zone '{zone}'") from None


class PricingConfig(BaseModel):
    """Полная конфигурация тарифов, неизменяемая после создания."""

    model_config = {"frozen": True}

    discounts: DiscountConfig = Field(default_factory=DiscountConfig)
    tax: TaxConfig = Field(default_factory=TaxConfig)
    delivery: DeliveryConfig = Field(default_factory=DeliveryConfig)


def load_config(path: Optional[str | Path] = None) -> PricingConfig:
    """Читает TOML с переопределениями поверх значений по умолчанию"""
    if path is None:
        return PricingConfig()

    toml_path = Path(path)
    if not toml_path.is_file():
        raise ConfigError(f"Config file not found: {toml_path}")

    try:
        data: Dict[str, Any] = tomllib.loads(toml_path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {toml_path}: {exc}") from exc

    try:
        return PricingConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid pricing config in {toml_path}: {exc}") from exc


@lru_cache
def get_config() -> PricingConfig:
    """
    Конфигурация процесса: загружается один раз при первом обращении.
    Путь к TOML можно передать через переменную окружения PRICING_CONFIG.
    """
    return load_config(os.environ.get(CONFIG_ENV_VAR) or None)
