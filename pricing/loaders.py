import json
from typing import Tuple

from .domain import DeliveryContext, Order, OrderItem, PricingContext, Profile


def _pick(data: dict, *keys, default=None):
    """Первое найденное значение среди вариантов написания ключа"""
    return next((data[k] for k in keys if k in data), default)


def item_from_dict(raw: dict) -> OrderItem:
    """Позиция из словаря; принимает и snake_case, и camelCase"""
    return OrderItem(
        kind=str(raw.get("kind", "hot")),
        sku=str(raw.get("sku", "")),
        title=str(raw.get("title", "")),
        filling=str(raw.get("filling", "")),
        qty=int(raw.get("qty", 0)),
        unit_price_cents=int(_pick(raw, "unit_price_cents", "unitPriceCents", default=0)),
        add_ons=tuple(map(str, _pick(raw, "add_ons", "addOns", default=()))),
    )


def order_from_dict(raw: dict) -> Order:
    return Order(items=tuple(map(item_from_dict, raw.get("items", []))))


def context_from_dict(raw: dict) -> PricingContext:
    profile = raw.get("profile", {})
    delivery = raw.get("delivery", {})
    coupon = raw.get("coupon")
    return PricingContext(
        profile=Profile(tier=str(profile.get("tier", "guest"))),
        delivery=DeliveryContext(
            zone=str(delivery.get("zone", "local")),
            rush=bool(delivery.get("rush", False)),
        ),
        coupon=None if coupon is None else str(coupon),
    )


def load_request(path: str) -> Tuple[Order, PricingContext]:
    """Загружает JSON-запрос {"order": ..., "context": ...} в иммутабельные объекты"""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    return order_from_dict(data.get("order", {})), context_from_dict(
        data.get("context", {})
    )
