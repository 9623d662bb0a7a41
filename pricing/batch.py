import asyncio
from functools import reduce
from typing import Dict, List, Optional, Sequence, Tuple

import structlog

from .domain import Order, PricingContext, PricingResult
from .ftypes import Either
from .total import TotalAggregator

PricingRequest = Tuple[Order, PricingContext]


# ============ Параллельный расчёт заказов ============


async def price_orders_async(
    requests: Sequence[PricingRequest],
    aggregator: Optional[TotalAggregator] = None,
    offset: int = 0,
) -> List[Either[dict, PricingResult]]:
    """
    Асинхронно рассчитывает список заказов.
    Калькуляторы чистые, поэтому порядок выполнения не важен;
    порядок результатов совпадает с порядком запросов.
    Ошибка одного заказа не прерывает остальные (Left в ответе).
    Записи лога несут номер запроса (offset + позиция) в поле batch_request.
    """
    aggregator = aggregator or TotalAggregator()

    async def price_one(
        index: int, request: PricingRequest
    ) -> Either[dict, PricingResult]:
        await asyncio.sleep(0)
        order, context = request
        # у каждой задачи gather своя копия contextvars
        with structlog.contextvars.bound_contextvars(batch_request=index):
            return aggregator.quote(order, context)

    tasks = [price_one(offset + i, r) for i, r in enumerate(requests)]
    return list(await asyncio.gather(*tasks))


# ============ Обработка пакетами ============


def _summarize(quotes: Sequence[Either[dict, PricingResult]]) -> Dict[str, int]:
    """Агрегирует результаты пакета через fold"""

    def accumulate(acc: Dict[str, int], quote: Either[dict, PricingResult]) -> dict:
        return quote.fold(
            lambda _error: {**acc, "failed": acc["failed"] + 1},
            lambda r: {
                **acc,
                "priced": acc["priced"] + 1,
                "revenue": acc["revenue"] + r.total_cents,
                "discounts": acc["discounts"] + r.discount_cents,
                "tax": acc["tax"] + r.tax_cents,
                "delivery": acc["delivery"] + r.delivery_fee_cents,
            },
        )

    empty = {"priced": 0, "failed": 0, "revenue": 0, "discounts": 0, "tax": 0, "delivery": 0}
    return reduce(accumulate, quotes, empty)


async def batch_price(
    requests: Sequence[PricingRequest],
    batch_size: int = 10,
    aggregator: Optional[TotalAggregator] = None,
) -> Dict[str, object]:
    """
    Рассчитывает заказы пакетами параллельно
    Возвращает агрегированную статистику и ошибки
    """
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")

    aggregator = aggregator or TotalAggregator()

    async def process_batch(
        start: int, batch: Sequence[PricingRequest]
    ) -> Dict[str, object]:
        quotes = await price_orders_async(batch, aggregator, offset=start)
        return {
            "stats": _summarize(quotes),
            "errors": [
                {**q.value, "request": start + i}
                for i, q in enumerate(quotes)
                if q.is_left
            ],
        }

    batches = [
        (i, requests[i : i + batch_size])
        for i in range(0, len(requests), batch_size)
    ]
    results = await asyncio.gather(*(process_batch(i, b) for i, b in batches))

    def sum_field(name: str) -> int:
        return sum(r["stats"][name] for r in results)

    return {
        "total_orders": len(requests),
        "priced_orders": sum_field("priced"),
        "failed_orders": sum_field("failed"),
        "total_revenue": sum_field("revenue"),
        "total_discounts": sum_field("discounts"),
        "total_tax": sum_field("tax"),
        "total_delivery": sum_field("delivery"),
        "errors": [e for r in results for e in r["errors"]],
        "batches_processed": len(results),
    }


# ============ Синхронная обёртка ============


def run_batch_pricing(
    requests: Sequence[PricingRequest],
    batch_size: int = 10,
    aggregator: Optional[TotalAggregator] = None,
) -> Dict[str, object]:
    """Синхронная обёртка для вызывающего кода без event loop"""
    return asyncio.run(batch_price(requests, batch_size, aggregator))
