# config/structlog_config.py
import logging
import sys
from datetime import date
from decimal import Decimal
from uuid import UUID

import structlog
from structlog.processors import CallsiteParameter, CallsiteParameterAdder


def stringify_ledger_values(_, __, event_dict):
    """
    Render Decimal amounts, UUIDs and dates as plain strings so JSON log lines
    read "120.00" rather than "Decimal('120.00')".
    """
    for key, value in event_dict.items():
        if isinstance(value, Decimal):
            event_dict[key] = format(value, "f")
        elif isinstance(value, date):
            event_dict[key] = value.isoformat()
        elif isinstance(value, UUID):
            event_dict[key] = str(value)
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    cache_loggers: bool = True,
) -> None:
    """
    Configure structlog and bridge it onto the stdlib root logger so Django's
    own loggers share the same renderer.

    Request context (request_id, method, path) is bound per request by
    hm_ledger.common.middleware.RequestContextMiddleware and merged here.
    """
    pre_chain = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    final_processor = (
        structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    )

    structlog.configure(
        processors=[
            *pre_chain,
            CallsiteParameterAdder(
                parameters=[
                    CallsiteParameter.MODULE,
                    CallsiteParameter.FUNC_NAME,
                    CallsiteParameter.LINENO,
                ]
            ),
            stringify_ledger_values,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        cache_logger_on_first_use=cache_loggers,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=final_processor,
        foreign_pre_chain=pre_chain,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # Postgres chatter stays at WARNING even when the app logs at DEBUG.
    logging.getLogger("django.db.backends").setLevel(max(logging.getLevelName(level), logging.WARNING))

    logging.captureWarnings(True)
