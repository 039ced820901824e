"""Exception hierarchy shared by the repair shop core."""

from __future__ import annotations


class RepairShopError(RuntimeError):
    """Base class for errors raised by the repair shop core."""


class ValidationError(RepairShopError):
    """Raised when incoming data fails validation."""


class FormClosedError(ValidationError):
    """Raised when a submitted repair order is edited or submitted again."""


class NotFoundError(ValidationError):
    """Raised when a client id does not exist in the directory."""


class ImageStoreError(RepairShopError):
    """Raised by image stores when an upload or preview fails."""


class SubmissionError(RepairShopError):
    """Raised when the ticket service rejects an accepted order."""
