"""
Registry of per-hand smoothers.

Each tracked hand owns exactly one smoother, created lazily on first sight
and kept for the lifetime of the registry.
"""

from enum import Enum
from typing import Callable, Iterator, Optional

from .logger import get_logger
from .vector_smoother import VectorSmoother, create_smoother

logger = get_logger("TargetRegistry")


class HandLabel(str, Enum):
    """Stable identity of a tracked hand."""
    LEFT = "Left"
    RIGHT = "Right"

    @classmethod
    def parse(cls, label: str) -> Optional["HandLabel"]:
        """
        Parse a detector handedness label.

        Args:
            label: Label string, case-insensitive.

        Returns:
            HandLabel, or None if the label is not recognised.
        """
        if isinstance(label, cls):
            return label
        normalized = str(label).strip().lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        return None


class TargetRegistry:
    """
    Keyed store of one smoother per hand.

    Usage:
        registry = TargetRegistry()
        smoother = registry.get_or_create(HandLabel.LEFT)
    """

    def __init__(self, factory: Callable[[], VectorSmoother] = create_smoother):
        """
        Initialize the registry.

        Args:
            factory: Zero-argument callable that builds a new smoother.
        """
        self._factory = factory
        self._smoothers: dict[HandLabel, VectorSmoother] = {}

    def get_or_create(self, key: HandLabel) -> VectorSmoother:
        """
        Get the smoother for a hand, creating it on first use.

        Args:
            key: Hand label.

        Returns:
            The same smoother instance for every call with the same key.
        """
        if not isinstance(key, HandLabel):
            raise TypeError(f"Registry keys must be HandLabel, got {type(key).__name__}")

        smoother = self._smoothers.get(key)
        if smoother is None:
            smoother = self._factory()
            self._smoothers[key] = smoother
            logger.debug(f"Created smoother for {key.value} hand")
        return smoother

    def get(self, key: HandLabel) -> Optional[VectorSmoother]:
        """Get the smoother for a hand without creating it."""
        return self._smoothers.get(key)

    def keys(self) -> list[HandLabel]:
        """Labels with an existing smoother, in creation order."""
        return list(self._smoothers)

    def clear(self) -> None:
        """Drop every smoother (session teardown)."""
        self._smoothers.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._smoothers

    def __len__(self) -> int:
        return len(self._smoothers)

    def __iter__(self) -> Iterator[HandLabel]:
        return iter(list(self._smoothers))
