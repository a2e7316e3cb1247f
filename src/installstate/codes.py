"""Status code constants for staleness checks.

These constants prevent stringly-typed statuses and ensure client code
branches on the values the monitor and CLI actually publish.
"""

from enum import Enum


class CheckStatus(str, Enum):
    """Outcome of one staleness check."""

    # Definite answers
    UP_TO_DATE = "up_to_date"
    STALE = "stale"

    # No answer: state could not be computed, hide any indicator
    UNKNOWN = "unknown"

    # The install command was requested and has not finished yet
    INSTALLING = "installing"


class ExitCode(int, Enum):
    """Exit codes of the `check` command."""

    UP_TO_DATE = 0
    STALE = 1
    UNKNOWN = 2
