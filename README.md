# xsubplayer

Read, write and composite **xsub** image subtitle files.

An xsub file has a 16-byte header (the magic `xsub`, a type tag, the design
width and height, and the size of the entry block), then a block of timed
subtitle records, then an encoded image (the sprite sheet) that fills the
rest of the file. Each record has a time span and a list of sprites. Each
sprite cuts a rectangle out of the sheet and places it on screen. It also
has an alignment, margins and fade-in and fade-out times.

## Modules

- `xsubplayer.format`: the binary structures `XsubHeader`, `ImageSubEntry`,
  `Entry`, `Point` and the `Align` flags. It also has `parse_entries` and
  `pack_entries`. Malformed data raises `XsubFormatError`, which is a
  `ValueError`.
- `xsubplayer.imagesub`: `ImageSub` is a sprite sheet (a PIL image) with its
  entries. `ImageSubFile` reads one from a path, from bytes or from a binary
  stream. `write_xsub` encodes a file.
- `xsubplayer.window`: `PlayerWindow` is an off-screen RGBA layer. It has a
  size, a position, a constant alpha and a back buffer (`frame`).
- `xsubplayer.player`: `ImageSubPlayer` draws the subtitles that are active
  at a given time onto the layer. It scales the sprites, aligns them and
  fades them in and out. It can play on a background thread. The module also
  has `fade_alpha` and `layout_entry`.
- `xsubplayer.timer`: `ChiliTimer` is a monotonic lap timer.

## Installation

```
pip install xsubplayer
```

## Writing a file

```python
from PIL import Image
from xsubplayer.format import Align, Entry, ImageSubEntry, Point
from xsubplayer.imagesub import write_xsub

sheet = Image.new("RGBA", (256, 64), (255, 255, 255, 255))
line = ImageSubEntry(
    start=1.0,
    end=4.0,
    entries=[
        Entry(
            point=Point(Align.BOTTOM | Align.CENTER, vertical=40, horizontal=0),
            fadein=0.25,
            fadeout=0.25,
            x=0, y=0, width=256, height=64,
        )
    ],
)
data = write_xsub("song.xsub", 1280, 720, [line], sheet)
```

`write_xsub` stores a PIL image as PNG. You can also pass it encoded image
bytes. It returns the file's bytes. If `target` is `None`, it writes nothing
and only returns the bytes.

## Loading and playing

```python
from xsubplayer.player import ImageSubPlayer

def present(image, position, alpha):
    ...  # put the RGBA PIL image on screen at (x, y) with layer alpha 0-255

player = ImageSubPlayer(1280, 720, present)
if player.load("song.xsub"):
    player.update(2.0)        # draw the moment 2.0 s into the subtitle
    player.play(0.0)          # or play from 0 s on a background thread
    ...
    player.stop()
```

`load` accepts an `ImageSub` or xsub data. It returns whether the result can
be played. Malformed data raises `XsubFormatError`.

`play_with_clock(get_time)` drives playback from a clock of your own, for
example a video's position.

`last_entry()` returns the record that the latest update drew.

`set_default_point`, `set_default_align`, `set_default_vertical` and
`set_default_horizontal` set a default placement. `use_default_point`,
`use_default_align`, `use_default_vertical` and `use_default_horizontal`
apply that default to every sprite. The `unuse_default_*` methods stop
applying it. In mix mode, the default alignment is combined with each
sprite's own alignment.

## The layer

`PlayerWindow` starts out visible. `hide()` and `show()` set its alpha to 0
and 255. `set_rect`, `set_size` and `set_position` place the layer.
`update_layer_bitmap()` grows the back buffer when the size outgrows it.

`safe_draw(draw)` calls `draw(frame, size)` while the layer is visible. It
presents the layer when `draw` returns true.

`clear(color)` fills the buffer with an `0xAARRGGBB` integer or an RGB(A)
tuple.

## Timing helper

```python
from xsubplayer.timer import ChiliTimer

timer = ChiliTimer()
elapsed = timer.mark()   # seconds since creation or the last mark
pending = timer.peek()   # seconds since the last mark, without a new lap
```

## What it does not do

The package does not open windows and does not draw to the screen. Every
presented frame goes to your `on_present` callback, and showing it is up to
your code. There is no command-line program.

## Running the tests

```
pip install -e .[test]
pytest
```