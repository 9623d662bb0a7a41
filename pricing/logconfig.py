"""Настройка structlog для библиотеки расчёта цен.

Два режима вывода в stderr:
- человекочитаемый (по умолчанию): ConsoleRenderer
- JSON (log_json=True): одна структурированная запись на строку

Модули пишут через logging.getLogger(__name__). Поля из ``extra``
(суммы расчёта, код ошибки) и переменные контекста (batch_request из
пакетного расчёта) попадают в каждую запись.
"""

from __future__ import annotations

import logging
import sys

import structlog

PACKAGE_LOGGER = "pricing"


def shared_processors() -> list[structlog.types.Processor]:
    """Цепочка для записей stdlib-логгеров пакета"""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.ExtraAdder(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_json: bool) -> structlog.types.Processor:
    if log_json:
        return structlog.processors.JSONRenderer(sort_keys=True)
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Подключает форматтер structlog к корневому обработчику.

    Args:
        verbose: DEBUG для логгера пакета (запись на каждый рассчитанный заказ).
            Иначе только отклонённые заказы (WARNING).
        log_json: JSON вместо консольного вывода.
    """
    pre_chain = shared_processors()

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_json),
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    logging.getLogger(PACKAGE_LOGGER).setLevel(
        logging.DEBUG if verbose else logging.WARNING
    )
