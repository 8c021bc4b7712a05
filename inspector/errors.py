"""Exceptions raised by the debug inspector."""


class InspectorError(Exception):
    """Base class for inspector errors."""


class TemplateError(InspectorError):
    """The page template is missing or malformed."""
