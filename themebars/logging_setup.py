# themebars/logging_setup.py
import logging
import sys
import structlog

LOGGER_NAMESPACE = "themebars"

_VERBOSITY_LEVELS = ("warning", "info", "debug")

def level_for_verbosity(verbosity: int) -> str:
    # -v counts: none -> warning, -v -> info, -vv and up -> debug.
    return _VERBOSITY_LEVELS[max(0, min(verbosity, len(_VERBOSITY_LEVELS) - 1))]

def _renderer(force_json_logs: bool):
    if force_json_logs:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

def configure_logging(log_level_str: str = "warning", force_json_logs: bool = False) -> logging.Handler:
    """
    Routes structlog events from the themebars package through one stderr
    handler. Render output goes to stdout, so logs never mix with pages.
    """
    log_level = getattr(logging, log_level_str.upper(), logging.WARNING)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=_renderer(force_json_logs),
            foreign_pre_chain=[structlog.stdlib.add_log_level],
        )
    )

    package_logger = logging.getLogger(LOGGER_NAMESPACE)
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.setLevel(log_level)
    package_logger.propagate = False

    structlog.get_logger(__name__).info("logging_configured", level=log_level_str, json=force_json_logs)
    return handler
