"""Image storage and ticket printing used by the intake form."""

from __future__ import annotations

import logging
import secrets
from pathlib import Path
from typing import Any, Protocol

from werkzeug.utils import secure_filename

from .errors import ImageStoreError, SubmissionError

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {"png", "jpg", "jpeg", "gif", "webp", "heic"}


class ImageStore(Protocol):
    def upload(self, file: Any) -> str:
        ...

    def preview(self, image_ref: str) -> Any:
        ...

    def release(self, image_ref: str) -> None:
        ...


class TicketService(Protocol):
    def submit_order(self, order: dict) -> None:
        ...


class LocalImageStore:
    """Keeps uploaded item photos in a folder on disk.

    ``file`` is anything with a ``filename`` and a ``save(path)`` method,
    such as a werkzeug ``FileStorage``.
    """

    def __init__(self, folder: str | Path) -> None:
        self.folder = Path(folder)

    def upload(self, file: Any) -> str:
        filename = secure_filename(getattr(file, "filename", None) or "")
        if not filename:
            raise ImageStoreError("Upload has no filename")
        extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
        if extension not in IMAGE_EXTENSIONS:
            raise ImageStoreError(f"Unsupported image type: {filename}")
        image_ref = f"{secrets.token_hex(8)}-{filename}"
        try:
            self.folder.mkdir(parents=True, exist_ok=True)
            file.save(self.folder / image_ref)
        except OSError as exc:
            raise ImageStoreError(f"Could not store {filename}") from exc
        logger.info("Stored image %s", image_ref)
        return image_ref

    def preview(self, image_ref: str) -> Path:
        path = self.folder / secure_filename(image_ref)
        if not path.is_file():
            raise ImageStoreError(f"Image not found: {image_ref}")
        return path

    def release(self, image_ref: str) -> None:
        try:
            (self.folder / secure_filename(image_ref)).unlink(missing_ok=True)
        except OSError as exc:
            raise ImageStoreError(f"Could not delete {image_ref}") from exc


class LoggingTicketService:
    """Stands in for the ticket printer: logs each order and keeps a copy."""

    def __init__(self, copies: int = 2) -> None:
        self.copies = copies
        self.submitted: list[dict] = []

    def submit_order(self, order: dict) -> None:
        if not order.get("items"):
            raise SubmissionError("Order has no items to print")
        self.submitted.append(order)
        logger.info(
            "Printing %d tickets for %s (total %s)",
            self.copies,
            order["client_name"],
            order["total"],
        )
