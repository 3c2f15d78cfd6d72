"""Structured logging via structlog.

Configures structlog once at process start. Modules keep using
``logging.getLogger(__name__)``; a `ProcessorFormatter` on the root handler
renders those records with the same processors and renderer.

Renderer selection:
  json_logs=False: `ConsoleRenderer` for a human watching the build.
  json_logs=True:  `JSONRenderer` for CI log collectors.

ContextVar injection:
  While a package is being published its name is held in a ContextVar and
  added to every line as ``package=<name>``.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

import structlog

_package_var: ContextVar[str] = ContextVar("package", default="")


def get_current_package() -> str:
    """Return the package being published, or empty string if none."""
    return _package_var.get()


@contextmanager
def package_context(name: str) -> Iterator[None]:
    """Bind ``name`` as the current package for the duration of the block."""
    token = _package_var.set(name)
    try:
        yield
    finally:
        _package_var.reset(token)


def _inject_context_vars(
    logger: logging.Logger,
    method: str,
    event_dict: dict,
) -> dict:
    """Structlog processor: inject the current package from its ContextVar."""
    package = get_current_package()
    if package:
        event_dict["package"] = package
    return event_dict


def configure_structlog(debug: bool = False, json_logs: bool = False) -> None:
    """Configure structlog and the stdlib bridge.

    Safe to call more than once; the root handler is replaced, not stacked.
    """
    shared_processors: list = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _inject_context_vars,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    level = logging.DEBUG if debug else logging.INFO

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )

    # Records from logging.getLogger() get the same processors and renderer.
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=[structlog.stdlib.add_logger_name, *shared_processors],
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )
    logging.basicConfig(level=level, handlers=[handler], force=True)
