from typing import Optional


class PricingError(ValueError):
    """Базовая ошибка расчёта: заказ не может быть оценён целиком"""

    code = "pricing_error"

    def as_dict(self) -> dict:
        return {"error": str(self), "code": self.code}


class InvalidLineItem(PricingError):
    """Отрицательное количество или цена в позиции заказа"""

    code = "invalid_line_item"

    def __init__(self, sku: str, qty: int, unit_price_cents: int):
        self.sku = sku
        self.qty = qty
        self.unit_price_cents = unit_price_cents
        super().__init__(
            f"Invalid line item '{sku}': qty={qty}, unit_price_cents={unit_price_cents}"
        )


class UnknownCoupon(PricingError):
    """Неизвестный код купона"""

    code = "unknown_coupon"

    def __init__(self, coupon: Optional[str]):
        self.coupon = coupon
        super().__init__(f"Unknown coupon '{coupon}'")


class ConfigError(ValueError):
    """Некорректный файл или значения конфигурации"""
