import sys
import os
import json
import logging

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
import pytest
import structlog
from pricing.domain import DeliveryContext, Order, OrderItem, PricingContext, Profile
from pricing.logconfig import configure_logging
from pricing.batch import run_batch_pricing
from pricing.total import price, quote


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    level = root.level
    package_level = logging.getLogger("pricing").level
    yield
    for handler in list(root.handlers):
        if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter):
            root.removeHandler(handler)
    root.setLevel(level)
    logging.getLogger("pricing").setLevel(package_level)
    structlog.reset_defaults()


def make_request(coupon=None):
    order = Order(
        items=(
            OrderItem(
                kind="hot",
                sku="P12-POTATO",
                title="Pierogi",
                filling="potato",
                qty=1,
                unit_price_cents=1500,
            ),
        )
    )
    ctx = PricingContext(
        profile=Profile(tier="regular"),
        delivery=DeliveryContext(zone="local"),
        coupon=coupon,
    )
    return order, ctx


def json_lines(err: str):
    return [json.loads(line) for line in err.splitlines() if line.startswith("{")]


def test_verbose_json_logs_priced_order(restore_logging, capsys):
    configure_logging(verbose=True, log_json=True)
    price(*make_request())

    events = json_lines(capsys.readouterr().err)
    priced = [e for e in events if e["event"] == "order priced"]

    assert priced
    assert priced[-1]["total_cents"] == 2120
    assert priced[-1]["level"] == "debug"
    assert priced[-1]["logger"] == "pricing.total"


def test_rejected_order_logged_as_warning(restore_logging, capsys):
    configure_logging(log_json=True)
    quote(*make_request(coupon="NOPE"))

    events = json_lines(capsys.readouterr().err)

    assert any(e["level"] == "warning" and e.get("code") == "unknown_coupon" for e in events)
    assert not any(e["event"] == "order priced" for e in events)


def test_batch_records_carry_request_number(restore_logging, capsys):
    """Каждая запись пакетного расчёта помечена номером запроса"""
    configure_logging(verbose=True, log_json=True)
    order, ctx = make_request()
    run_batch_pricing([(order, ctx), (order, ctx), (order, ctx)], batch_size=2)

    events = json_lines(capsys.readouterr().err)
    numbers = sorted(e["batch_request"] for e in events if e["event"] == "order priced")

    assert numbers == [0, 1, 2]
