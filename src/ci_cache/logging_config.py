"""structlog setup for CI runs.

Log records from every ``ci_cache`` module go through one processor chain and
render in one of three formats:

* ``github``: plain lines, with warnings and errors raised as workflow
  command annotations (``::warning::``/``::error::``) and debug records as
  ``::debug::`` so the runner folds them away unless step debugging is on.
* ``json``: one JSON object per line, for log shipping.
* ``console``: structlog's colored dev renderer.

``auto`` picks ``github`` on an Actions runner, ``console`` on a terminal and
``json`` otherwise.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog

from ci_cache.outputs import escape_command_message

if TYPE_CHECKING:
    from ci_cache.core.config import ObservabilityConfig

_WORKFLOW_COMMANDS = {"debug": "debug", "warning": "warning", "error": "error", "critical": "error"}

# Keys the annotation line would only repeat.
_GITHUB_DROPPED_KEYS = ("timestamp", "logger")


def render_github(_logger: Any, method_name: str, event_dict: dict[str, Any]) -> str:
    """Render one record as a workflow command line."""
    level = str(event_dict.pop("level", method_name))
    event = str(event_dict.pop("event", ""))
    for key in _GITHUB_DROPPED_KEYS:
        event_dict.pop(key, None)
    context = " ".join(f"{key}={value}" for key, value in sorted(event_dict.items()))
    message = f"{event} {context}".strip()

    command = _WORKFLOW_COMMANDS.get(level)
    if command is None:
        return message
    return f"::{command}::{escape_command_message(message)}"


def _pick_renderer(log_format: str, *, github_actions: bool) -> Any:
    if log_format == "auto":
        if github_actions:
            log_format = "github"
        elif sys.stderr.isatty():
            log_format = "console"
        else:
            log_format = "json"

    if log_format == "github":
        return render_github
    if log_format == "console":
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def setup_logging(
    config: ObservabilityConfig,
    *,
    verbose: bool = False,
    github_actions: bool = False,
) -> None:
    """Route stdlib logging through structlog and pick a renderer.

    ``verbose`` forces DEBUG regardless of ``config.log_level``.
    """
    level = logging.DEBUG if verbose else getattr(logging, config.log_level.upper(), logging.INFO)

    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _pick_renderer(config.log_format, github_actions=github_actions),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    logging.getLogger("ci_cache").setLevel(level)
    # boto's debug output drowns the cache log
    logging.getLogger("botocore").setLevel(max(level, logging.INFO))
