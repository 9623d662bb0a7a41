"""
Итоговая цена заказа:

    total = subtotal - discounts + delivery_fee + tax

Налог считается с горячих позиций до скидок (скидки уменьшают сумму к
оплате, но не облагаемую базу). Срочность уже входит в delivery_fee,
отдельной надбавки здесь нет. Вся арифметика целочисленная.
"""

import logging
from typing import Optional

from .config import PricingConfig, get_config
from .delivery import DeliveryFeeCalculator
from .discounts import DiscountEngine
from .domain import Order, PricingContext, PricingResult
from .errors import PricingError
from .ftypes import Either
from .subtotal import SubtotalCalculator
from .tax import TaxCalculator

logger = logging.getLogger(__name__)


class TotalAggregator:
    """Фасад над четырьмя калькуляторами с общей конфигурацией"""

    def __init__(self, config: Optional[PricingConfig] = None):
        self.config = config or get_config()
        self.subtotals = SubtotalCalculator()
        self.discount_engine = DiscountEngine(self.config)
        self.taxes = TaxCalculator(self.config)
        self.delivery_fees = DeliveryFeeCalculator(self.config)

    def price(self, order: Order, context: PricingContext) -> PricingResult:
        """Полный расчёт или исключение, частичного результата не бывает"""
        subtotal_cents = self.subtotals.subtotal(order)
        discount_cents = self.discount_engine.discounts(
            order, context.profile, context.coupon
        )
        tax_cents = self.taxes.tax(order, context.delivery)
        delivery_fee_cents = self.delivery_fees.delivery_fee(
            order, context.delivery, context.profile
        )

        total_cents = max(
            subtotal_cents - discount_cents + delivery_fee_cents + tax_cents, 0
        )
        result = PricingResult(
            subtotal_cents=subtotal_cents,
            discount_cents=discount_cents,
            tax_cents=tax_cents,
            delivery_fee_cents=delivery_fee_cents,
            total_cents=total_cents,
        )
        logger.debug(
            "order priced",
            extra={
                "items": len(order.items),
                "tier": context.profile.tier,
                "zone": context.delivery.zone,
                "rush": context.delivery.rush,
                "coupon": context.coupon,
                **result.as_dict(),
            },
        )
        return result

    def total(self, order: Order, context: PricingContext) -> int:
        return self.price(order, context).total_cents

    def quote(
        self, order: Order, context: PricingContext
    ) -> Either[dict, PricingResult]:
        """
        Расчёт → Either[error, PricingResult]
        Left({"error", "code"}) при ошибке входных данных
        Right(PricingResult) при успехе
        """
        try:
            return Either.right(self.price(order, context))
        except PricingError as exc:
            logger.warning("order rejected: %s", exc, extra={"code": exc.code})
            return Either.left(exc.as_dict())


def price(order: Order, context: PricingContext) -> PricingResult:
    return TotalAggregator().price(order, context)


def total(order: Order, context: PricingContext) -> int:
    return TotalAggregator().total(order, context)


def quote(order: Order, context: PricingContext) -> Either[dict, PricingResult]:
    return TotalAggregator().quote(order, context)
