"""closedloop-cli — submit customer input to ClosedLoop for AI analysis.

Validates and sanitizes free text, submits it to the analysis service,
and tracks the asynchronous processing until a result is available.
"""

from closedloop.version import __version__

__all__: list[str] = ["__version__"]
