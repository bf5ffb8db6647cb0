"""Local filesystem storage for product images."""

from __future__ import annotations

import logging
from pathlib import Path

from inventory.core.config import get_settings

logger = logging.getLogger(__name__)


def resolve_image_path(image_path: str | Path, root: str | Path | None = None) -> Path | None:
    """Resolve a stored image path, refusing anything outside the images root."""
    images_root = Path(root or get_settings().uploads_dir).resolve()
    path = Path(image_path)
    if not path.is_absolute():
        path = images_root / path
    path = path.resolve()
    if not path.is_relative_to(images_root):
        return None
    return path


def delete_image(image_path: str | Path | None, root: str | Path | None = None) -> bool:
    """Remove a product image after its product row is gone.

    Best effort: a missing file or filesystem error is logged and reported
    as ``False`` so the already-committed delete is never undone.
    """
    if not image_path:
        return False
    path = resolve_image_path(image_path, root)
    if path is None:
        logger.warning(f"Refusing to delete image outside storage root: {image_path}")
        return False
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Failed to delete product image {path}: {e}")
        return False
    logger.info(f"Deleted product image {path}")
    return True
