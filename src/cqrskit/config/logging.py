"""structlog rendering for the ``cqrskit`` logger hierarchy.

Library modules log through ``logging.getLogger(__name__)`` and attach the
definition they are working on as ``extra``::

    logger.debug("CreateUser invalid", extra={"definition": "app.CreateUser"})

:func:`configure_logging` installs a ``ProcessorFormatter`` that lifts those
extras (see :data:`CONTEXT_KEYS`) into the event dict, so console lines and
JSON records both carry the definition, hook and plugin names.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from cqrskit.config.models import LoggingConfig

CONTEXT_KEYS = ("definition", "hook", "plugin")


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.ExtraAdder(allow=CONTEXT_KEYS),
        structlog.processors.TimeStamper(fmt="iso"),
    ]


def _render_chain(log_json: bool) -> list[structlog.types.Processor]:
    chain: list[structlog.types.Processor] = [
        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
    ]
    if log_json:
        # Plugin failures carry exc_info; JSON needs it as a string.
        chain += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        chain.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    return chain


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Route every log record to stderr through structlog.

    Replaces existing root handlers, so repeated calls do not stack output.
    The ``cqrskit`` logger runs at DEBUG when *verbose*, WARNING otherwise.
    """
    pre_chain = _pre_chain()
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
            processors=_render_chain(log_json),
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.WARNING)
    logging.getLogger("cqrskit").setLevel(logging.DEBUG if verbose else logging.WARNING)


def configure_from_settings(config: LoggingConfig) -> None:
    """Apply the ``[logging]`` section of :class:`~cqrskit.config.CqrsSettings`."""
    configure_logging(verbose=config.verbose, log_json=config.log_json)
