"""Logging setup shared by the regauthz services.

A component configuration file may carry ``[logger_<name>]``,
``[handler_<name>]`` and ``[formatter_<name>]`` sections. They are applied on
top of ``DEFAULT_LOGGING_CONFIG`` when the component initializes its logger.
Only stream and file handlers are supported.
"""

import contextvars
import logging
import sys
from configparser import RawConfigParser
from contextlib import contextmanager
from logging import Logger
from logging import config as logging_config
from typing import Any, Dict, Generator, List, Optional, Tuple

from regauthz import config

DEFAULT_LOGGING_CONFIG = {
    "version": 1,
    "root": {"level": "INFO", "handlers": ["consoleHandler"]},
    "loggers": {
        "regauthz": {
            "level": "INFO",
        },
    },
    "handlers": {
        "consoleHandler": {
            "class": "logging.StreamHandler",
            "level": "INFO",
            "formatter": "formatter_formatter",
            "stream": "ext://sys.stdout",
        }
    },
    "formatters": {
        "formatter_formatter": {
            "format": "%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
}

try:
    logging_config.dictConfig(DEFAULT_LOGGING_CONFIG)
except KeyError:
    logging.basicConfig(format="%(asctime)s %(name)-12s %(levelname)-8s %(message)s", level=logging.DEBUG)

# Set by the HTTP handlers for each request
request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id")

_STREAMS = {"sys.stdout": sys.stdout, "sys.stderr": sys.stderr}


def annotate_logger(logger: Logger) -> None:
    """Add a ``RequestIDFilter`` to every handler of ``logger``."""
    request_id_filter = RequestIDFilter()
    for handler in logger.handlers:
        handler.addFilter(request_id_filter)


def _sections(raw_config: RawConfigParser, prefix: str) -> List[Tuple[str, Dict[str, str]]]:
    return [
        (section[len(prefix) :], dict(raw_config.items(section)))
        for section in raw_config.sections()
        if section.startswith(prefix)
    ]


def _names(value: str) -> List[str]:
    return [name.strip() for name in value.split(",") if name.strip()]


def _parse_args(args_str: str) -> Tuple[Any, ...]:
    """Parse the ``args`` option of a handler section, e.g. ``(sys.stdout,)``."""
    args_str = args_str.strip()
    if not (args_str.startswith("(") and args_str.endswith(")")):
        raise ValueError(f"Invalid args format: {args_str}")

    return tuple(_STREAMS.get(arg, arg.strip("'\"")) for arg in _names(args_str[1:-1]))


def _build_handler(options: Dict[str, str], formatters: Dict[str, logging.Formatter]) -> logging.Handler:
    handler_class = options.get("class", "logging.StreamHandler")
    args = _parse_args(options.get("args", "()"))

    handler: logging.Handler
    if handler_class.endswith("StreamHandler"):
        handler = logging.StreamHandler(args[0] if args else sys.stdout)
    elif handler_class.endswith("FileHandler"):
        handler = logging.FileHandler(args[0])
    else:
        raise ValueError(f"Unsupported handler class: {handler_class}")

    handler.setLevel(options.get("level", "NOTSET").upper())
    formatter = formatters.get(options.get("formatter", ""))
    if formatter is not None:
        handler.setFormatter(formatter)
    return handler


def _configure_logging_from_raw(raw_config: RawConfigParser) -> None:
    """Apply the logging sections found in ``raw_config``.

    A handler that cannot be built is reported on stderr and left out, the
    loggers referencing it are still configured.
    """
    formatters = {
        name: logging.Formatter(options.get("format", "%(message)s"), options.get("datefmt"))
        for name, options in _sections(raw_config, "formatter_")
    }

    handlers: Dict[str, logging.Handler] = {}
    for name, options in _sections(raw_config, "handler_"):
        try:
            handlers[name] = _build_handler(options, formatters)
        except (ValueError, IndexError, OSError) as e:
            print(f"Error configuring handler {name}: {e}", file=sys.stderr)

    for name, options in _sections(raw_config, "logger_"):
        logger = logging.getLogger() if name == "root" else logging.getLogger(name)
        logger.setLevel(options.get("level", "NOTSET").upper())
        if name != "root":
            logger.propagate = options.get("propagate", "1") == "1"
        logger.handlers = [handlers[h] for h in _names(options.get("handlers", "")) if h in handlers]


@contextmanager
def _safe_logging_configuration() -> Generator[None, None, None]:
    """Restore the handlers, levels and propagation of all loggers if the block fails."""
    root = logging.getLogger()
    saved = [
        (logger, list(logger.handlers), logger.level, logger.propagate)
        for logger in [root] + [l for l in logging.Logger.manager.loggerDict.values() if isinstance(l, Logger)]
    ]

    try:
        yield
    except Exception:
        for logger, handlers, level, propagate in saved:
            logger.handlers = handlers
            logger.setLevel(level)
            logger.propagate = propagate
        raise


def _safe_get_config(loggername: str) -> Optional[RawConfigParser]:
    try:
        return config.get_config(loggername)
    except Exception:
        return None


def init_logging(loggername: str) -> Logger:
    """Return the logger ``regauthz.<loggername>``.

    When ``loggername`` is a configuration component, the logging sections of
    its configuration are applied first. A broken logging configuration is
    reported and the previous configuration is kept.
    """
    logger = logging.getLogger(f"regauthz.{loggername}")

    component_config = _safe_get_config(loggername)
    if component_config:
        try:
            with _safe_logging_configuration():
                _configure_logging_from_raw(component_config)
        except Exception as e:
            logger.error("Logging configuration error: %s", e)

    # The registry handlers log each request themselves
    logging.getLogger("tornado.access").disabled = True

    annotate_logger(logging.getLogger())

    return logger


class RequestIDFilter(logging.Filter):
    """Attach the ID of the request being served to each record.

    The ID is available to formatters as ``%(reqid)s`` and, wrapped as
    ``(reqid=...)`` or empty outside a request, as ``%(reqidf)s``.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        reqid = request_id_var.get("")

        record.reqid = reqid
        record.reqidf = f"(reqid={reqid})" if reqid else ""

        return True
