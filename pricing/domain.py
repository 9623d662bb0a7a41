from dataclasses import dataclass, asdict
from typing import Optional, Tuple

HOT = "hot"
FROZEN = "frozen"
VIP = "vip"


@dataclass(frozen=True)
class OrderItem:
    kind: str  # "hot" | "frozen"
    sku: str
    title: str
    filling: str
    qty: int
    unit_price_cents: int  # центы
    add_ons: Tuple[str, ...] = ()

    @property
    def line_cost_cents(self) -> int:
        return self.qty * self.unit_price_cents


@dataclass(frozen=True)
class Order:
    items: Tuple[OrderItem, ...] = ()


@dataclass(frozen=True)
class Profile:
    tier: str  # "guest" | "regular" | "vip"


@dataclass(frozen=True)
class DeliveryContext:
    zone: str  # "local" | "outer"
    rush: bool = False


@dataclass(frozen=True)
class PricingContext:
    profile: Profile
    delivery: DeliveryContext
    coupon: Optional[str] = None  # "PIEROGI-BOGO" | "FIRST10" | None


@dataclass(frozen=True)
class PricingResult:
    subtotal_cents: int
    discount_cents: int
    tax_cents: int
    delivery_fee_cents: int
    total_cents: int

    def as_dict(self) -> dict:
        """Плоский словарь для внешнего слоя хранения"""
        return asdict(self)


@dataclass(frozen=True)
class DiscountBreakdown:
    tier_cents: int = 0
    volume_cents: int = 0
    coupon_cents: int = 0
    total_cents: int = 0
