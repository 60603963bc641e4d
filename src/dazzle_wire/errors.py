"""
Error types for dazzle-wire component state synchronization.
"""

from __future__ import annotations


class WireError(Exception):
    """Base exception for all dazzle-wire errors."""

    def __init__(self, message: str, field: str | None = None, component: str | None = None):
        self.message = message
        self.field = field
        self.component = component
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with component/field context if available."""
        location = ".".join(part for part in (self.component, self.field) if part)
        if location:
            return f"{location}: {self.message}"
        return self.message


class ConfigurationError(WireError):
    """
    Raised when a component declaration is invalid.

    Examples:
    - Default value of a kind that cannot cross the wire
    - Cast declared for a property that does not exist
    - Unknown cast shorthand
    - Malformed wire:model modifiers
    """

    pass


class ValidationError(WireError):
    """
    Raised when an inbound value is rejected.

    The component state is never mutated when this is raised.

    Examples:
    - "abc" submitted for an int property
    - Update targeting a locked property
    - Cast failing to parse the submitted value
    """

    pass


class CorruptSnapshotError(ValidationError):
    """Raised when a snapshot checksum does not match its payload."""

    pass


class NotFoundError(WireError):
    """
    Raised when something is referenced but never declared.

    Examples:
    - Computed property without a derivation
    - Update for an unknown property
    - Component name missing from the registry
    """

    pass
