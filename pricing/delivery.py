from typing import Optional

from .config import PricingConfig, get_config
from .domain import VIP, DeliveryContext, Order, Profile
from .subtotal import sum_lines


class DeliveryFeeCalculator:
    """
    Доставка — одна плата на заказ, а не на позицию.
    Зависит только от суммы заказа и контекста, но не от числа позиций.
    """

    def __init__(self, config: Optional[PricingConfig] = None):
        self.config = config or get_config()

    def base_fee_waived(self, order_subtotal: int, profile: Profile) -> bool:
        cfg = self.config.delivery
        if cfg.vip_waives_base_fee and profile.tier == VIP:
            return True
        return order_subtotal >= cfg.free_threshold_cents

    def fee_for_subtotal(
        self, order_subtotal: int, delivery: DeliveryContext, profile: Profile
    ) -> int:
        """Плата по агрегированной сумме заказа"""
        cfg = self.config.delivery
        base = cfg.base_fee_for(delivery.zone)
        if self.base_fee_waived(order_subtotal, profile):
            base = 0
        # срочность добавляется ровно один раз, даже при бесплатной доставке
        rush = cfg.rush_surcharge_cents if delivery.rush else 0
        return base + rush

    def delivery_fee(
        self, order: Order, delivery: DeliveryContext, profile: Profile
    ) -> int:
        return self.fee_for_subtotal(sum_lines(order), delivery, profile)

    __call__ = delivery_fee


def delivery_fee(order: Order, delivery: DeliveryContext, profile: Profile) -> int:
    return DeliveryFeeCalculator().delivery_fee(order, delivery, profile)
