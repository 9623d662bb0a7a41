from functools import reduce
from typing import Callable

from .domain import HOT, Order, OrderItem
from .errors import InvalidLineItem


def line_cost(item: OrderItem) -> int:
    """Стоимость позиции; отрицательные qty/цена отклоняются, а не обнуляются"""
    if item.qty < 0 or item.unit_price_cents < 0:
        raise InvalidLineItem(item.sku, item.qty, item.unit_price_cents)
    return item.line_cost_cents


def sum_lines(
    order: Order, predicate: Callable[[OrderItem], bool] = lambda item: True
) -> int:
    """Сумма стоимостей позиций, прошедших фильтр (fold по позициям)"""
    return reduce(
        lambda acc, item: acc + line_cost(item) if predicate(item) else acc,
        order.items,
        0,
    )


class SubtotalCalculator:
    """Сумма позиций заказа до скидок. Конфигурация не нужна: правил нет."""

    def subtotal(self, order: Order) -> int:
        return sum_lines(order)

    def hot_subtotal(self, order: Order) -> int:
        """Облагаемая база: только горячие позиции (все позиции всё равно проверяются)"""
        for item in order.items:
            line_cost(item)
        return sum_lines(order, lambda item: item.kind == HOT)

    __call__ = subtotal


def subtotal(order: Order) -> int:
    return SubtotalCalculator().subtotal(order)


def hot_subtotal(order: Order) -> int:
    return SubtotalCalculator().hot_subtotal(order)
