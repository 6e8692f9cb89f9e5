"""An off-screen layered surface that subtitle frames are drawn onto and presented from."""

from __future__ import annotations

import threading
from typing import Callable, Optional, Tuple, Union

from PIL import Image

Color = Union[int, Tuple[int, int, int], Tuple[int, int, int, int]]
PresentCallback = Callable[[Image.Image, Tuple[int, int], int], None]
DrawCallback = Callable[[Image.Image, Tuple[int, int]], bool]

OPAQUE = 0xFF
TRANSPARENT = 0x00


def _rgba(color: Color) -> Tuple[int, int, int, int]:
    """Turn an ``0xAARRGGBB`` integer or an RGB(A) tuple into an RGBA tuple."""
    if isinstance(color, int):
        value = color & 0xFFFFFFFF
        return (
            (value >> 16) & 0xFF,
            (value >> 8) & 0xFF,
            value & 0xFF,
            (value >> 24) & 0xFF,
        )
    parts = tuple(color)
    if len(parts) == 3:
        return (parts[0], parts[1], parts[2], OPAQUE)
    if len(parts) == 4:
        return (parts[0], parts[1], parts[2], parts[3])
    raise ValueError(f"colour must have 3 or 4 components, got {len(parts)}")


class PlayerWindow:
    """A transparent layer with a back buffer, a placement and a constant alpha.

    Each time the layer is updated, the part of the back buffer covered by the
    current size is handed to ``on_present`` together with the position and
    the layer alpha: ``on_present(image, (x, y), alpha)``.
    """

    def __init__(
        self,
        width: int = 0,
        height: int = 0,
        on_present: Optional[PresentCallback] = None,
    ) -> None:
        self._lock = threading.RLock()
        self._on_present = on_present
        self._size: Tuple[int, int] = (int(width), int(height))
        self._position: Tuple[int, int] = (0, 0)
        self._alpha = TRANSPARENT
        self._frame: Optional[Image.Image] = None
        if width > 0 and height > 0:
            self.make_new_bitmap(width, height)
        self.show()

    def set_rect(
        self, left: int, top: int, right: int, bottom: int, update: bool = False
    ) -> bool:
        """Place the layer at ``(left, top)`` with the size of the rectangle."""
        with self._lock:
            self._size = (right - left, bottom - top)
            self._position = (left, top)
            return self.update_layer() if update else True

    def set_size(self, width: int, height: int, update: bool = False) -> bool:
        with self._lock:
            self._size = (width, height)
            return self.update_layer() if update else True

    def set_position(self, x: int, y: int, update: bool = False) -> bool:
        with self._lock:
            self._position = (x, y)
            return self.update_layer() if update else True

    def current_size(self) -> Tuple[int, int]:
        with self._lock:
            return self._size

    def position(self) -> Tuple[int, int]:
        with self._lock:
            return self._position

    @property
    def frame(self) -> Optional[Image.Image]:
        """The back buffer, or None before one has been made."""
        with self._lock:
            return self._frame

    def make_new_bitmap(self, width: int, height: int) -> bool:
        """Replace the back buffer with a transparent one of the given size."""
        if width <= 0 or height <= 0:
            return False
        with self._lock:
            self._frame = Image.new("RGBA", (width, height), (0, 0, 0, 0))
            return True

    def update_layer_bitmap(self) -> bool:
        """Grow the back buffer if it no longer covers the current size."""
        with self._lock:
            if self._frame is not None:
                frame_width, frame_height = self._frame.size
                width, height = self._size
                if frame_width >= width and frame_height >= height:
                    return True
            return self.make_new_bitmap(*self._size)

    def _update_layer(self, alpha: Optional[int] = None) -> bool:
        with self._lock:
            if alpha is not None:
                self._alpha = alpha & 0xFF
            return self.update_layer()

    def update_layer(self) -> bool:
        """Present the visible part of the back buffer; False if it cannot be."""
        with self._lock:
            if self._frame is None:
                return False
            width, height = self._size
            frame_width, frame_height = self._frame.size
            if width <= 0 or height <= 0 or width > frame_width or height > frame_height:
                return False
            if self._on_present is not None:
                image = self._frame.crop((0, 0, width, height))
                self._on_present(image, self._position, self._alpha)
            return True

    def show(self) -> bool:
        """Make the layer opaque and present it."""
        with self._lock:
            self._update_layer(OPAQUE)
            return self._alpha != TRANSPARENT

    def hide(self) -> bool:
        """Make the layer fully transparent and present it."""
        with self._lock:
            self._update_layer(TRANSPARENT)
            return self._alpha == TRANSPARENT

    def is_visible(self) -> bool:
        with self._lock:
            return self._alpha != TRANSPARENT

    def safe_draw(self, draw: Optional[DrawCallback]) -> bool:
        """Let ``draw(frame, size)`` paint the buffer while visible; present if it did."""
        if draw is None:
            return False
        with self._lock:
            if self._frame is None or self._alpha == TRANSPARENT:
                return False
            if draw(self._frame, self._size):
                return self.update_layer()
            return False

    def clear(self, color: Color = 0, update_layer: bool = True) -> None:
        """Fill the back buffer with ``color`` (``0xAARRGGBB`` or an RGB(A) tuple)."""
        fill = _rgba(color)
        with self._lock:
            if self._frame is None:
                return
            self._frame.paste(fill, (0, 0, *self._frame.size))
            if update_layer:
                self.update_layer()