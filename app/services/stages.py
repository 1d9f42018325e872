"""Enumerations describing the steps of removing a stored item."""

from enum import Enum


class SweepStep(str, Enum):
    """Deletion steps a sweep performs for every expired item, in order."""

    BLOB = "blob"
    METADATA = "metadata"
