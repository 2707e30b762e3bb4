"""Base exception shared by every uiget module."""


class UigetError(Exception):
    """Root of all errors the CLI reports to the user instead of a traceback."""
