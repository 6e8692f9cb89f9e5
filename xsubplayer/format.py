"""Binary layout of xsub image-subtitle files.

An xsub file is a 16-byte header, a block of subtitle entries, and an
encoded image (the sprite sheet) that fills the rest of the file.
All integers and floats are little-endian; the entry records are packed
without padding.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntFlag
from typing import ClassVar

MAGIC = b"xsub"
IMAGE_TYPE = b"\x01\x00\x00\x00"

_HEADER = struct.Struct("<4s4sHHI")
_POINT = struct.Struct("<BHH")
_ENTRY = struct.Struct("<BHHffiiii")
_SUB = struct.Struct("<ffH")


class XsubFormatError(ValueError):
    """Raised when xsub data is malformed or cannot be encoded."""


def _pack(layout: struct.Struct, *values) -> bytes:
    try:
        return layout.pack(*values)
    except struct.error as exc:
        raise XsubFormatError(f"value out of range: {exc}") from exc


def _unpack(layout: struct.Struct, data, offset: int = 0) -> tuple:
    if offset < 0 or len(data) - offset < layout.size:
        raise XsubFormatError(
            f"need {layout.size} bytes at offset {offset}, "
            f"have {max(len(data) - offset, 0)}"
        )
    return layout.unpack_from(data, offset)


class Align(IntFlag):
    """Anchoring flags of a subtitle sprite on the screen."""

    NONE = 0
    LEFT = 1 << 0
    RIGHT = 1 << 1
    TOP = 1 << 2
    BOTTOM = 1 << 3
    CENTER = 1 << 4
    MIDDLE = 1 << 5


@dataclass
class Point:
    """Alignment and margins of a sprite, in source pixels."""

    align: Align = Align.NONE
    vertical: int = 0
    horizontal: int = 0

    SIZE: ClassVar[int] = _POINT.size

    def pack(self) -> bytes:
        return _pack(_POINT, int(self.align), self.vertical, self.horizontal)

    @classmethod
    def unpack(cls, data) -> Point:
        align, vertical, horizontal = _unpack(_POINT, data)
        return cls(Align(align), vertical, horizontal)


@dataclass
class Entry:
    """One sprite: where it sits in the sheet and how it is placed and faded."""

    point: Point = field(default_factory=Point)
    fadein: float = 0.0
    fadeout: float = 0.0
    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0

    SIZE: ClassVar[int] = _ENTRY.size

    def pack(self) -> bytes:
        return _pack(
            _ENTRY,
            int(self.point.align),
            self.point.vertical,
            self.point.horizontal,
            self.fadein,
            self.fadeout,
            self.x,
            self.y,
            self.width,
            self.height,
        )

    @classmethod
    def unpack(cls, data) -> Entry:
        align, vertical, horizontal, fadein, fadeout, x, y, width, height = _unpack(
            _ENTRY, data
        )
        return cls(
            Point(Align(align), vertical, horizontal),
            fadein,
            fadeout,
            x,
            y,
            width,
            height,
        )


@dataclass
class ImageSubEntry:
    """A time span and the sprites shown during it."""

    start: float = 0.0
    end: float = 0.0
    entries: list[Entry] = field(default_factory=list)

    HEADER_SIZE: ClassVar[int] = _SUB.size

    @property
    def count(self) -> int:
        return len(self.entries)

    def pack(self) -> bytes:
        head = _pack(_SUB, self.start, self.end, len(self.entries))
        return head + b"".join(entry.pack() for entry in self.entries)

    @classmethod
    def unpack_from(cls, data, offset: int = 0) -> tuple[ImageSubEntry, int]:
        """Decode the record at ``offset``; return it and the offset after it."""
        start, end, count = _unpack(_SUB, data, offset)
        offset += _SUB.size
        entries = []
        for _ in range(count):
            entries.append(Entry.unpack(memoryview(data)[offset:offset + Entry.SIZE]))
            offset += Entry.SIZE
        return cls(start, end, entries), offset


@dataclass
class XsubHeader:
    """The fixed header at the start of an xsub file."""

    width: int = 0
    height: int = 0
    size: int = 0
    magic: bytes = MAGIC
    kind: bytes = IMAGE_TYPE

    SIZE: ClassVar[int] = _HEADER.size

    def pack(self) -> bytes:
        return _pack(_HEADER, self.magic, self.kind, self.width, self.height, self.size)

    @classmethod
    def unpack(cls, data) -> XsubHeader:
        magic, kind, width, height, size = _unpack(_HEADER, data)
        return cls(width=width, height=height, size=size, magic=magic, kind=kind)

    def is_valid(self) -> bool:
        return self.magic == MAGIC and self.kind == IMAGE_TYPE


def parse_entries(data) -> list[ImageSubEntry]:
    """Decode a block of back-to-back subtitle records."""
    result = []
    offset = 0
    while offset < len(data):
        entry, offset = ImageSubEntry.unpack_from(data, offset)
        result.append(entry)
    return result


def pack_entries(entries) -> bytes:
    """Encode subtitle records back to back."""
    return b"".join(entry.pack() for entry in entries)