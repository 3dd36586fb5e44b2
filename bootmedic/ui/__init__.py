"""Console presentation layer.

All chrome goes to stderr. stdout is reserved for machine-readable output.
"""

from __future__ import annotations

from bootmedic.ui.console import err_console
from bootmedic.ui.policy import should_interact

__all__ = ["err_console", "should_interact"]
