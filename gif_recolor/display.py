"""Qt display-surface helpers."""
from __future__ import annotations

from PIL import Image
from PIL.ImageQt import ImageQt
from PySide6.QtGui import QImage


def to_qimage(bitmap: Image.Image) -> QImage:
    """Return a detached ``QImage`` copy of an RGBA bitmap."""

    rgba = bitmap if bitmap.mode == "RGBA" else bitmap.convert("RGBA")
    # ImageQt borrows the Pillow buffer.
    wrapped = ImageQt(rgba)
    return wrapped.copy()
