"""
STARGAZER Logging Configuration

Provides centralized logging configuration for the sky engine with support for:
- Rotating file handlers with size limits
- Console output
- Per-component log level configuration
- Tick IDs so every log line of one scheduler cycle can be grouped
- Convenience helpers (log_exception, log_timing)

Usage:
    from stargazer.logging_config import setup_logging, get_logger, log_timing
    from stargazer.logging_config import tick_context

    # Initialize logging at application startup
    setup_logging(log_level="INFO", log_file="stargazer.log")

    # Get a logger for your module
    logger = get_logger(__name__)

    # Time a block of code
    with log_timing(logger, "visibility_tick", warn_threshold_sec=0.1):
        visible = engine.compute_visible(...)

    # Tag log lines of one cycle
    with tick_context(prefix="tick"):
        logger.debug("Computing visible set")
"""

import logging
import sys
import time
import traceback
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Generator, Mapping, Optional

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_LOG_FORMAT_WITH_TICK = (
    "%(asctime)s - %(name)s - %(levelname)s - [%(tick_id)s] - %(message)s"
)
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_MAX_BYTES = 5 * 1024 * 1024  # 5MB
DEFAULT_BACKUP_COUNT = 3

ROOT_LOGGER_NAME = "stargazer"

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# =============================================================================
# Tick ID Support
# =============================================================================

_tick_id: ContextVar[Optional[str]] = ContextVar("tick_id", default=None)


class TickIdFilter(logging.Filter):
    """Logging filter that stamps the current tick ID onto log records.

    Records emitted outside a tick_context() get "-".
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.tick_id = _tick_id.get() or "-"
        return True


def get_tick_id() -> Optional[str]:
    """Return the tick ID of the current context, or None."""
    return _tick_id.get()


def generate_tick_id(prefix: str = "sg") -> str:
    """Generate a short unique ID such as "tick-a1b2c3d4"."""
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


@contextmanager
def tick_context(
    tick_id: Optional[str] = None,
    prefix: str = "sg",
) -> Generator[str, None, None]:
    """Context manager that sets the tick ID for the enclosed block.

    Args:
        tick_id: ID to use. If None, one is generated from prefix.
        prefix: Prefix for generated IDs.

    Yields:
        The tick ID in effect.
    """
    tid = tick_id or generate_tick_id(prefix)
    token = _tick_id.set(tid)
    try:
        yield tid
    finally:
        _tick_id.reset(token)


def setup_logging(
    log_level: str = DEFAULT_LOG_LEVEL,
    log_file: Optional[str | Path] = None,
    enable_tick_ids: bool = True,
    component_levels: Optional[Mapping[str, str]] = None,
) -> None:
    """Configure the "stargazer" logger namespace.

    Should be called once at application startup. Calling it again replaces
    the handlers installed by the previous call.

    Args:
        log_level: Default logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to a log file, rotated by size.
        enable_tick_ids: If True, include the tick ID in log output.
        component_levels: Per-component overrides, e.g. {"scheduler": "DEBUG"}.
    """
    level = LOG_LEVELS.get(log_level.upper(), logging.INFO)
    component_levels = component_levels or {}
    # Handlers pass the most verbose configured level; loggers do the filtering
    handler_level = min([level] + [LOG_LEVELS.get(lvl.upper(), logging.INFO)
                                   for lvl in component_levels.values()])

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.filters.clear()

    log_format = DEFAULT_LOG_FORMAT
    tick_filter = None
    if enable_tick_ids:
        # Handler-level filter so records from child loggers get stamped too
        tick_filter = TickIdFilter()
        log_format = DEFAULT_LOG_FORMAT_WITH_TICK

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(handler_level)
    console_handler.setFormatter(logging.Formatter(log_format, DEFAULT_DATE_FORMAT))
    if tick_filter:
        console_handler.addFilter(tick_filter)
    root_logger.addHandler(console_handler)

    if log_file:
        from logging.handlers import RotatingFileHandler

        file_path = Path(log_file)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            file_path,
            maxBytes=DEFAULT_MAX_BYTES,
            backupCount=DEFAULT_BACKUP_COUNT,
        )
        file_handler.setLevel(handler_level)
        file_handler.setFormatter(logging.Formatter(log_format, DEFAULT_DATE_FORMAT))
        if tick_filter:
            file_handler.addFilter(tick_filter)
        root_logger.addHandler(file_handler)

    for component, component_level in component_levels.items():
        set_component_level(component, component_level)


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the stargazer namespace.

    Example:
        logger = get_logger("visibility")   # -> "stargazer.visibility"
    """
    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def set_component_level(component: str, level: str) -> None:
    """Set the log level of one component, e.g. ("scheduler", "DEBUG")."""
    logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{component}")
    logger.setLevel(LOG_LEVELS.get(level.upper(), logging.INFO))


# =============================================================================
# Convenience Helpers
# =============================================================================


def log_exception(
    logger: logging.Logger,
    message: str,
    exc: BaseException,
    level: int = logging.ERROR,
    include_traceback: bool = True,
) -> None:
    """Log an exception with its type, message and optionally the traceback.

    Args:
        logger: Logger instance to use
        message: Context message describing what operation failed
        exc: The exception that was raised
        level: Log level to use (default: ERROR)
        include_traceback: If True, append the formatted traceback
    """
    exc_type = type(exc).__name__
    extra = {
        "exception_type": exc_type,
        "exception_message": str(exc),
    }

    if include_traceback:
        tb = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        logger.log(level, f"{message}: [{exc_type}] {exc}\n{tb}", extra=extra)
    else:
        logger.log(level, f"{message}: [{exc_type}] {exc}", extra=extra)


@contextmanager
def log_timing(
    logger: logging.Logger,
    operation: str,
    level: int = logging.DEBUG,
    warn_threshold_sec: Optional[float] = None,
) -> Generator[None, None, None]:
    """Log the duration of the enclosed block.

    Emits a WARNING instead when the block exceeds warn_threshold_sec, which
    the scheduler uses to flag ticks that overrun their period.
    """
    start_time = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start_time
        extra = {
            "operation": operation,
            "elapsed_seconds": round(elapsed, 4),
        }

        if warn_threshold_sec is not None and elapsed > warn_threshold_sec:
            logger.warning(
                f"{operation} completed in {elapsed:.4f}s "
                f"(exceeded {warn_threshold_sec}s budget)",
                extra=extra,
            )
        else:
            logger.log(level, f"{operation} completed in {elapsed:.4f}s", extra=extra)
