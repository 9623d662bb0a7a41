"""
Движок скидок: независимые правила (уровень клиента, объём, купоны)
считаются по отдельности, суммируются и ограничиваются подытогом.

Новый купон добавляется правилом в реестр, существующие правила не меняются.
"""

from abc import ABC, abstractmethod
from functools import reduce
from typing import Dict, Optional, Tuple

from .config import DiscountConfig, PricingConfig, get_config
from .domain import VIP, DiscountBreakdown, Order, OrderItem, Profile
from .errors import UnknownCoupon
from .subtotal import line_cost, sum_lines

FIRST10 = "FIRST10"
PIEROGI_BOGO = "PIEROGI-BOGO"


def percent_of(amount: int, percent: int) -> int:
    """Процент от суммы с усечением вниз до цента, только целая арифметика"""
    return amount * percent // 100


class DiscountRule(ABC):
    """Общая способность: посчитать скидку для заказа"""

    name = "rule"

    def __init__(self, config: DiscountConfig):
        self.config = config

    @abstractmethod
    def amount(self, order: Order, profile: Profile, subtotal: int) -> int:
        ...


class TierDiscount(DiscountRule):
    """vip получает процент от подытога до купонов"""

    name = "tier"

    def amount(self, order: Order, profile: Profile, subtotal: int) -> int:
        if profile.tier != VIP:
            return 0
        return percent_of(subtotal, self.config.vip_percent)


class VolumeDiscount(DiscountRule):
    """Скидка за единицу для крупных упаковок (12, 24), по каждой позиции"""

    name = "volume"

    def line_rebate(self, item: OrderItem) -> int:
        per_unit = self.config.volume_rebates_cents.get(item.qty, 0)
        # скидка по позиции не превышает её стоимость
        return min(per_unit * item.qty, line_cost(item))

    def amount(self, order: Order, profile: Profile, subtotal: int) -> int:
        return reduce(lambda acc, item: acc + self.line_rebate(item), order.items, 0)


class First10Coupon(DiscountRule):
    """FIRST10: фиксированный процент от подытога"""

    name = FIRST10

    def amount(self, order: Order, profile: Profile, subtotal: int) -> int:
        return min(max(percent_of(subtotal, self.config.first10_percent), 0), subtotal)


class PierogiBogoCoupon(DiscountRule):
    """
    PIEROGI-BOGO: позиции-шестёрки сортируются по цене за единицу
    и разбиваются на пары; в каждой паре бесплатна единица более дешёвой
    позиции (bogo_free_units), но не больше стоимости самой позиции.
    Непарный остаток и другие размеры не участвуют.
    """

    name = PIEROGI_BOGO

    def pairs(self, order: Order) -> Tuple[Tuple[OrderItem, OrderItem], ...]:
        packs = sorted(
            (i for i in order.items if i.qty == self.config.bogo_pack_size),
            key=lambda i: i.unit_price_cents,
        )
        return tuple(zip(packs[0::2], packs[1::2]))

    def free_value(self, cheaper: OrderItem) -> int:
        free = cheaper.unit_price_cents * self.config.bogo_free_units
        return min(free, line_cost(cheaper))

    def amount(self, order: Order, profile: Profile, subtotal: int) -> int:
        return sum(self.free_value(cheaper) for cheaper, _ in self.pairs(order))


def default_coupons(config: DiscountConfig) -> Dict[str, DiscountRule]:
    """Реестр купонов: код -> правило"""
    return {
        FIRST10: First10Coupon(config),
        PIEROGI_BOGO: PierogiBogoCoupon(config),
    }


def normalize_coupon(coupon: Optional[str]) -> Optional[str]:
    """Пустой купон считается отсутствующим; код сравнивается без регистра"""
    if coupon is None:
        return None
    code = coupon.strip().upper()
    return code or None


class DiscountEngine:
    """Сумма правил скидок с ограничением сверху подытогом заказа"""

    def __init__(
        self,
        config: Optional[PricingConfig] = None,
        coupons: Optional[Dict[str, DiscountRule]] = None,
        rules: Optional[Tuple[DiscountRule, ...]] = None,
    ):
        self.config = config or get_config()
        self.rules: Tuple[DiscountRule, ...] = (
            rules
            if rules is not None
            else (
                TierDiscount(self.config.discounts),
                VolumeDiscount(self.config.discounts),
            )
        )
        self.coupons = (
            coupons if coupons is not None else default_coupons(self.config.discounts)
        )

    def resolve_coupon(self, coupon: Optional[str]) -> Optional[DiscountRule]:
        code = normalize_coupon(coupon)
        if code is None:
            return None
        if code not in self.coupons:
            raise UnknownCoupon(coupon)
        return self.coupons[code]

    def breakdown(
        self, order: Order, profile: Profile, coupon: Optional[str] = None
    ) -> DiscountBreakdown:
        """Скидка по каждому правилу отдельно и итог после ограничения"""
        coupon_rule = self.resolve_coupon(coupon)
        subtotal = sum_lines(order)

        # отрицательная скидка от правила не может увеличить цену
        amounts = {
            rule.name: max(rule.amount(order, profile, subtotal), 0)
            for rule in self.rules
        }
        coupon_cents = (
            max(coupon_rule.amount(order, profile, subtotal), 0) if coupon_rule else 0
        )
        combined = sum(amounts.values()) + coupon_cents

        return DiscountBreakdown(
            tier_cents=amounts.get(TierDiscount.name, 0),
            volume_cents=amounts.get(VolumeDiscount.name, 0),
            coupon_cents=coupon_cents,
            total_cents=min(combined, subtotal),
        )

    def discounts(
        self, order: Order, profile: Profile, coupon: Optional[str] = None
    ) -> int:
        return self.breakdown(order, profile, coupon).total_cents

    __call__ = discounts


def discounts(order: Order, profile: Profile, coupon: Optional[str] = None) -> int:
    return DiscountEngine().discounts(order, profile, coupon)
