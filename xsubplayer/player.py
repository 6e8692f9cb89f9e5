"""Timed playback of image subtitles onto a layered surface."""

from __future__ import annotations

import threading
from time import sleep
from typing import Callable, Optional, Tuple

from PIL import Image

from .format import Align, Entry, ImageSubEntry, Point
from .imagesub import ImageSub, ImageSubFile, Source
from .timer import ChiliTimer
from .window import PlayerWindow, PresentCallback

_FULL_ALPHA = 255
_TICK = 0.001


def _ratio(elapsed: float, span: float) -> float:
    # A zero-length fade only reaches this point at its very edge.
    if span == 0:
        return 0.0
    return elapsed / span


def fade_alpha(
    start: float, end: float, fadein: float, fadeout: float, time: float
) -> int:
    """Return the constant alpha (0-255) of a sprite at ``time``."""
    if time <= start + fadein:
        ratio = _ratio(time - start, fadein)
    elif time >= end - fadeout:
        ratio = _ratio(end - time, fadeout)
    else:
        return _FULL_ALPHA
    return max(0, min(_FULL_ALPHA, int(ratio * 255.0)))


def layout_entry(
    entry: Entry,
    point: Point,
    canvas_size: Tuple[int, int],
    scale_x: float,
    scale_y: float,
) -> Tuple[int, int, int, int]:
    """Return ``(x, y, width, height)`` of a sprite on the canvas.

    The anchoring comes from ``point.align``; the margins are the entry's own.
    The height keeps the sprite's aspect ratio after the horizontal scaling.
    """
    canvas_width, canvas_height = canvas_size
    width = int(entry.width * scale_x + 0.5)
    if entry.width and entry.height:
        height = int(width / (entry.width / entry.height) + 0.5)
    else:
        height = 0

    scaled_width = entry.width * scale_x
    scaled_height = entry.height * scale_y
    margin_x = entry.point.horizontal * scale_x
    margin_y = entry.point.vertical * scale_y

    if point.align & Align.RIGHT:
        x = canvas_width - scaled_width - margin_x
    elif point.align & Align.CENTER:
        x = (canvas_width - scaled_width) / 2.0 + margin_x
    else:
        x = margin_x

    if point.align & Align.BOTTOM:
        y = canvas_height - scaled_height - margin_y
    elif point.align & Align.MIDDLE:
        y = (canvas_height - scaled_height) / 2.0 + margin_y
    else:
        y = margin_y

    return int(x + 0.5), int(y + 0.5), width, height


def _blend(
    frame: Image.Image,
    sheet: Image.Image,
    entry: Entry,
    box: Tuple[int, int, int, int],
    alpha: int,
) -> bool:
    """Draw one sprite from the sheet onto the frame; False if it cannot be."""
    x, y, width, height = box
    if width <= 0 or height <= 0 or entry.width <= 0 or entry.height <= 0:
        return False
    if (
        entry.x < 0
        or entry.y < 0
        or entry.x + entry.width > sheet.width
        or entry.y + entry.height > sheet.height
    ):
        return False

    sprite = sheet.crop((entry.x, entry.y, entry.x + entry.width, entry.y + entry.height))
    if sprite.mode != "RGBA":
        sprite = sprite.convert("RGBA")
    if sprite.size != (width, height):
        sprite = sprite.resize((width, height))
    if alpha != _FULL_ALPHA:
        sprite.putalpha(sprite.getchannel("A").point(lambda v: v * alpha // _FULL_ALPHA))

    left, top = max(x, 0), max(y, 0)
    right, bottom = min(x + width, frame.width), min(y + height, frame.height)
    if left < right and top < bottom:
        part = sprite.crop((left - x, top - y, right - x, bottom - y))
        frame.alpha_composite(part, (left, top))
    return True


class ImageSubPlayer(PlayerWindow):
    """Draws the image subtitle active at a given time onto its surface."""

    def __init__(
        self,
        width: int = 0,
        height: int = 0,
        on_present: Optional[PresentCallback] = None,
    ) -> None:
        super().__init__(width, height, on_present)
        self._current: Optional[ImageSub] = None
        self._last: Optional[ImageSubEntry] = None
        self._playing = False
        self._thread: Optional[threading.Thread] = None
        self._default_point = Point()
        self._use_align = False
        self._mix_align = False
        self._use_vertical = False
        self._use_horizontal = False

    def current_image_sub(self) -> Optional[ImageSub]:
        with self._lock:
            return self._current

    def load(self, source: ImageSub | Source) -> bool:
        """Load a subtitle object or xsub data; return whether it can be played.

        Malformed xsub data raises ``XsubFormatError`` and leaves nothing loaded.
        """
        with self._lock:
            self._current = None
            self._last = None
            if isinstance(source, ImageSub):
                self._current = source
                return source.is_valid()
            sub = ImageSubFile(source)
            if not sub.is_valid():
                return False
            self._current = sub
            return True

    def unload(self) -> None:
        with self._lock:
            self._current = None

    def is_loaded(self) -> bool:
        with self._lock:
            return self._current is not None

    def is_playing(self) -> bool:
        with self._lock:
            return self._playing

    def last_entry(self) -> Optional[ImageSubEntry]:
        """The subtitle entry drawn by the latest update, or None."""
        with self._lock:
            return self._last

    def _effective_point(self, entry: Entry) -> Point:
        point = Point(entry.point.align, entry.point.vertical, entry.point.horizontal)
        if self._use_align:
            if self._mix_align:
                point.align = point.align | self._default_point.align
            else:
                point.align = self._default_point.align
        if self._use_vertical:
            point.vertical = self._default_point.vertical
        if self._use_horizontal:
            point.horizontal = self._default_point.horizontal
        return point

    def update(self, time: float) -> None:
        """Redraw the surface for ``time`` seconds into the subtitle."""
        with self._lock:
            frame = self._frame
            sub = self._current
            if frame is None or sub is None or not sub.is_valid():
                return
            canvas = self._size
            if canvas[0] <= 0 or canvas[1] <= 0 or sub.width <= 0 or sub.height <= 0:
                return

            width, height = float(canvas[0]), float(canvas[1])
            ratio = sub.aspect_ratio
            if width / height != ratio:
                if width <= height:
                    height = width / ratio
                else:
                    width = height * ratio
            scale_x = width / sub.width
            scale_y = height / sub.height

            self.clear(0, update_layer=False)

            drawn = 0
            for span in sub.entries:
                if time < span.start or time > span.end:
                    continue
                self._last = span
                for entry in span.entries:
                    point = self._effective_point(entry)
                    box = layout_entry(entry, point, canvas, scale_x, scale_y)
                    alpha = fade_alpha(span.start, span.end, entry.fadein, entry.fadeout, time)
                    if _blend(frame, sub.image, entry, box, alpha):
                        drawn += 1

            if drawn == 0 and self._last is not None:
                self._last = None
                self.update_layer()
            elif drawn > 0:
                self.update_layer()

    def _run(self, make_clock: Callable[[], Callable[[], float]], clear_after: bool) -> None:
        get_time = make_clock()
        while True:
            with self._lock:
                if self._current is None:
                    self._playing = False
                if not self._playing:
                    break
            self.update(get_time())
            sleep(_TICK)
        if clear_after:
            self.clear()

    def _launch(
        self,
        make_clock: Callable[[], Callable[[], float]],
        clear_after: bool,
        as_thread: bool,
    ) -> None:
        if self.is_playing():
            self.stop()
        with self._lock:
            self._playing = True
        if not as_thread:
            self._run(make_clock, clear_after)
            return
        thread = threading.Thread(
            target=self._run, args=(make_clock, clear_after), daemon=True
        )
        with self._lock:
            self._thread = thread
        thread.start()

    def play(self, start: float = 0.0, as_thread: bool = True) -> None:
        """Play from ``start`` seconds on the monotonic clock; clear when stopped."""

        def make_clock() -> Callable[[], float]:
            timer = ChiliTimer()
            return lambda: timer.peek() + start

        self._launch(make_clock, True, as_thread)

    def play_with_clock(
        self, get_time: Optional[Callable[[], float]], as_thread: bool = True
    ) -> None:
        """Play following the time that ``get_time()`` reports."""
        if get_time is None:
            return
        self._launch(lambda: get_time, False, as_thread)

    def stop(self, await_for_last: bool = False) -> None:
        """Stop playback, optionally once the current subtitle has gone."""
        with self._lock:
            if not self._playing:
                return
        if await_for_last:
            while True:
                with self._lock:
                    if self._last is None:
                        break
                sleep(_TICK)
        with self._lock:
            self._playing = False
            thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join()

    def set_default_point(self, point: Point) -> None:
        with self._lock:
            self._default_point = Point(point.align, point.vertical, point.horizontal)

    def set_default_align(self, align: Align) -> None:
        with self._lock:
            self._default_point.align = Align(align)

    def set_default_vertical(self, vertical: int) -> None:
        with self._lock:
            self._default_point.vertical = vertical

    def set_default_horizontal(self, horizontal: int) -> None:
        with self._lock:
            self._default_point.horizontal = horizontal

    def use_default_point(self, mix_mode: bool = False) -> None:
        """Override every part of each sprite's point with the default one."""
        with self._lock:
            self._use_align = True
            self._mix_align = mix_mode
            self._use_vertical = True
            self._use_horizontal = True

    def use_default_align(self, mix_mode: bool = False) -> None:
        """Override (or, in mix mode, combine with) each sprite's alignment."""
        with self._lock:
            if mix_mode:
                self._mix_align = True
            self._use_align = True

    def use_default_vertical(self) -> None:
        with self._lock:
            self._use_vertical = True

    def use_default_horizontal(self) -> None:
        with self._lock:
            self._use_horizontal = True

    def unuse_default_point(self) -> None:
        with self._lock:
            self._use_align = False
            self._mix_align = False
            self._use_vertical = False
            self._use_horizontal = False

    def unuse_default_align(self) -> None:
        with self._lock:
            self._use_align = False

    def unuse_default_vertical(self) -> None:
        with self._lock:
            self._use_vertical = False

    def unuse_default_horizontal(self) -> None:
        with self._lock:
            self._use_horizontal = False