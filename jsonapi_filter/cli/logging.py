"""Logging setup for CLI runs. The library itself never configures handlers."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class PreviousLoggingState:
    level: int
    handlers: list[logging.Handler]


def level_for_verbosity(verbosity: int) -> int:
    if verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    return logging.WARNING


def configure_logging(*, verbosity: int) -> PreviousLoggingState:
    root = logging.getLogger()
    previous = PreviousLoggingState(level=root.level, handlers=list(root.handlers))

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    root.handlers = [handler]
    root.setLevel(level_for_verbosity(verbosity))
    return previous


def restore_logging(previous: PreviousLoggingState) -> None:
    root = logging.getLogger()
    root.handlers = previous.handlers
    root.setLevel(previous.level)
