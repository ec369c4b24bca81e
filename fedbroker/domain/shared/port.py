"""Base marker for domain ports."""

from typing import Protocol


class Port(Protocol):
    """Marker base for ports implemented by infrastructure adapters."""
