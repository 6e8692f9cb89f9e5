"""Image subtitles: a sprite sheet with timed entries, and the xsub file reader."""

from __future__ import annotations

import io
import math
import os
from typing import BinaryIO, Iterable, Union

from PIL import Image

from .format import (
    ImageSubEntry,
    XsubFormatError,
    XsubHeader,
    pack_entries,
    parse_entries,
)

Source = Union[str, os.PathLike, bytes, bytearray, memoryview, BinaryIO]


class ImageSub:
    """A sprite sheet together with the subtitle entries drawn from it."""

    def __init__(
        self,
        image: Image.Image | None = None,
        width: float = 0.0,
        height: float = 0.0,
        entries: Iterable[ImageSubEntry] | None = None,
    ) -> None:
        self.image = image
        self.width = float(width)
        self.height = float(height)
        self.entries: list[ImageSubEntry] = list(entries) if entries is not None else []

    def add(self, entry: ImageSubEntry) -> None:
        self.entries.append(entry)

    @property
    def aspect_ratio(self) -> float:
        if self.height:
            return self.width / self.height
        return math.nan if not self.width else math.copysign(math.inf, self.width)

    def is_empty(self) -> bool:
        return not self.entries

    def is_valid(self) -> bool:
        return self.image is not None and bool(self.entries)


def _read_source(source: Source) -> bytes:
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    if isinstance(source, (str, os.PathLike)):
        if not os.fspath(source):
            raise ValueError("empty path")
        with open(source, "rb") as stream:
            return stream.read()
    return source.read()


class ImageSubFile(ImageSub):
    """An image subtitle read from xsub data (a path, bytes or a binary stream)."""

    def __init__(self, source: Source) -> None:
        data = _read_source(source)
        if len(data) < XsubHeader.SIZE:
            raise XsubFormatError("data shorter than the xsub header")
        header = XsubHeader.unpack(data)
        if not header.is_valid():
            raise XsubFormatError("not an xsub image subtitle")

        end = XsubHeader.SIZE + header.size
        if len(data) < end:
            raise XsubFormatError("entry block is truncated")
        raw = data[XsubHeader.SIZE:end]
        entries = parse_entries(raw)

        try:
            image = Image.open(io.BytesIO(data[end:]))
            image.load()
        except OSError as exc:
            raise XsubFormatError(f"cannot decode sprite sheet: {exc}") from exc

        super().__init__(image.convert("RGBA"), header.width, header.height, entries)
        self._header = header
        self._raw_entries = raw

    @property
    def header(self) -> XsubHeader:
        return self._header

    @property
    def raw_entries(self) -> bytes:
        return self._raw_entries


def write_xsub(
    target: str | os.PathLike | BinaryIO | None,
    width: int,
    height: int,
    entries: Iterable[ImageSubEntry],
    image: Image.Image | bytes,
) -> bytes:
    """Encode an xsub file, write it to ``target`` if given, and return its bytes."""
    block = pack_entries(entries)
    if isinstance(image, Image.Image):
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        blob = buffer.getvalue()
    else:
        blob = bytes(image)
    data = XsubHeader(width=width, height=height, size=len(block)).pack() + block + blob

    if isinstance(target, (str, os.PathLike)):
        with open(target, "wb") as stream:
            stream.write(data)
    elif target is not None:
        target.write(data)
    return data