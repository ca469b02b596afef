"""Error taxonomy and the process exit statuses each failure maps to."""

from __future__ import annotations

from enum import IntEnum


class ExitStatus(IntEnum):
    OK = 0
    FAILURE = 1
    MISSING_SOURCE = 2
    UNRESOLVED_ALIAS = 3
    UNKNOWN_VERB = 4
    ARG_COUNT = 5
    HANDOFF = 6
    DAEMON = 7
    CONFIG = 8
    SINGLETON = 9


class If1secError(Exception):
    """Base for every failure the plugin turns into an exit status."""

    exit_status: ExitStatus = ExitStatus.FAILURE


class ResolutionError(If1secError):
    """The invocation name carries no ``_<interface>`` suffix."""

    exit_status = ExitStatus.UNRESOLVED_ALIAS


class MissingSource(If1secError):
    """A counter file for the interface does not exist."""

    exit_status = ExitStatus.MISSING_SOURCE

    def __init__(self, side: str, path) -> None:
        self.side = side
        self.path = path
        super().__init__(f"Can not find {side.upper()} input file: {path}")


class ConfigError(If1secError):
    exit_status = ExitStatus.CONFIG


class UnknownVerb(If1secError):
    exit_status = ExitStatus.UNKNOWN_VERB


class WrongArgCount(If1secError):
    exit_status = ExitStatus.ARG_COUNT


class SingletonConflict(If1secError):
    """Another sampler already holds the PID file lock."""

    exit_status = ExitStatus.SINGLETON


class SamplerError(If1secError):
    exit_status = ExitStatus.DAEMON


class CounterError(SamplerError):
    """A counter file could not be read or did not hold a non-negative integer."""


class HandoffError(If1secError):
    exit_status = ExitStatus.HANDOFF
