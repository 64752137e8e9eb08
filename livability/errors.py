"""
Exception hierarchy for the Livable Communities data browser.

Every error carries a ``user_message`` suitable for the notice shown to the
person using the browser, separate from the developer-facing ``str(error)``.
"""

from typing import Any, Optional


class BrowserError(Exception):
    """Base class for all data browser errors."""

    user_message = "Something went wrong in the data browser."

    def __init__(self, message: str, user_message: Optional[str] = None):
        super().__init__(message)
        if user_message is not None:
            self.user_message = user_message


class DataLoadError(BrowserError):
    """A geometry, indicator or outline source was unreachable or malformed.

    Fatal for the session: the source data is static per deployment, so
    there is nothing to retry.
    """

    def __init__(self, source: str, reason: str):
        super().__init__(
            f"Failed to load {source}: {reason}",
            user_message=f"Failure loading JSON or CSV file.\nSource: {source}\nReason: {reason}",
        )
        self.source = source
        self.reason = reason


class UnknownEntityError(BrowserError):
    """A town id that is not in the catalog."""

    user_message = (
        "No city or town selected. Please try selecting a town again "
        "from either the dropdown or the map."
    )

    def __init__(self, entity_id: Any):
        super().__init__(f"Unknown town id: {entity_id!r}")
        self.entity_id = entity_id


class UnknownThemeError(BrowserError):
    """A theme id that is not in the registry."""

    user_message = (
        "No theme selected. Please try selecting a theme again "
        "from either the dropdown or the table."
    )

    def __init__(self, theme_id: Any):
        super().__init__(f"Unknown theme id: {theme_id!r}")
        self.theme_id = theme_id


class NotReadyError(BrowserError):
    """A selection arrived before the initial data load completed."""

    user_message = "The map data is still loading. Please try again in a moment."

    def __init__(self, action: str):
        super().__init__(f"Rejected {action}: data not loaded yet")
        self.action = action


class ThemeDefinitionError(BrowserError):
    """A theme descriptor violates the breakpoint/color/label invariants."""

    def __init__(self, theme_id: Any, reason: str):
        super().__init__(f"Invalid theme definition {theme_id!r}: {reason}")
        self.theme_id = theme_id
        self.reason = reason
