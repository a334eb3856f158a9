from __future__ import annotations

import logging
import sys
import uuid
from dataclasses import asdict, dataclass

import structlog

# -- Event names -----------------------------------------------------------
# Short string codes, easy to grep for in aggregated log output.

# Analysis lifecycle.
E_ANALYSIS_START = "analysis_start"
E_ANALYSIS_DONE = "analysis_done"
E_BARS_REVERSED = "bars_reversed"

# Indicator / scoring diagnostics.
E_INDICATOR_UNAVAILABLE = "indicator_unavailable"
E_SIGNALS_SCORED = "signals_scored"
E_PROFILE_FILTER = "profile_filter"

# Order proposals.
E_ORDER_PROPOSED = "order_proposed"
E_ORDER_REJECTED = "order_rejected"

# Generic error/diagnostics events.
E_CONFIG_LOADED = "config_loaded"
E_ERROR = "error"


# -- Reason codes ----------------------------------------------------------
R_NO_DIRECTION = "no_direction"
R_NO_STOP = "no_stop_candidate"
R_NO_TARGET = "no_target_candidate"
R_RR_BELOW_MIN = "rr_below_minimum"
R_ZERO_RISK = "zero_risk"
R_RISK_LIMIT = "risk_limit"
R_INSUFFICIENT_DATA = "insufficient_data"


@dataclass(slots=True)
class TelemetryContext:
    """Context information bound to every telemetry event.

    All fields are optional; callers supply whatever identifiers they have.
    """

    run_id: str | None = None
    symbol: str | None = None
    profile: str | None = None
    timeframe: str | None = None


def new_id(prefix: str) -> str:
    """Return a short unique identifier with ``prefix``.

    Examples
    --------
    >>> new_id("run")  # doctest: +SKIP
    'run_4f9d2ab3'
    """

    return f"{prefix}_{uuid.uuid4().hex[:8]}"


def log_event(event: str, ctx: TelemetryContext | None = None, **fields) -> None:
    """Log ``event`` via structlog, binding context and extra fields.

    Parameters
    ----------
    event:
        Event name constant, e.g. :data:`E_ORDER_PROPOSED`.
    ctx:
        Optional :class:`TelemetryContext` whose non-``None`` attributes will be
        bound to the log record.
    **fields:
        Additional key/value pairs describing the event.
    """

    logger = structlog.get_logger()
    if ctx is not None:
        logger = logger.bind(**{k: v for k, v in asdict(ctx).items() if v is not None})
    logger.info(event, **fields)


def setup_logger(level: str = "INFO"):
    """Configure and return a structlog logger.

    Parameters
    ----------
    level:
        Logging level name, e.g. ``"INFO"`` or ``"DEBUG"``.
    """

    lvl = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", level=lvl)
    processors = [
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.dict_tracebacks,
        structlog.processors.JSONRenderer(),
    ]
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(lvl),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )
    return structlog.get_logger()
