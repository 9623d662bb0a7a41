from typing import Optional

from .config import BPS, PricingConfig, get_config
from .domain import DeliveryContext, Order
from .subtotal import SubtotalCalculator


class TaxCalculator:
    """
    Налог только на горячие позиции; замороженные не облагаются.
    Ставка зависит от зоны доставки, срочность на налог не влияет.
    """

    def __init__(self, config: Optional[PricingConfig] = None):
        self.config = config or get_config()
        self._subtotals = SubtotalCalculator()

    def tax(self, order: Order, delivery: DeliveryContext) -> int:
        base = self._subtotals.hot_subtotal(order)
        rate = self.config.tax.rate_for(delivery.zone)
        amount = base * rate // BPS
        # облагаемая база есть, а округление дало ноль: берём минимальный цент
        if amount == 0 and base > 0 and rate > 0:
            return 1
        return amount

    __call__ = tax


def tax(order: Order, delivery: DeliveryContext) -> int:
    return TaxCalculator().tax(order, delivery)
