import time

import pytest
from PIL import Image

from xsubplayer.format import Align, Entry, ImageSubEntry, Point, XsubFormatError
from xsubplayer.imagesub import ImageSub, ImageSubFile, write_xsub
from xsubplayer.player import ImageSubPlayer, fade_alpha, layout_entry

RED = (255, 0, 0, 255)
CANVAS = (100, 50)
MARGIN_X = 7
MARGIN_Y = 5
SPRITE_W = 20
SPRITE_H = 10


def _sheet():
    return Image.new("RGBA", (SPRITE_W, SPRITE_H), RED)


def _entry(align=Align.LEFT | Align.TOP, fadein=0.0, fadeout=0.0):
    return Entry(Point(align, MARGIN_Y, MARGIN_X), fadein, fadeout, 0, 0, SPRITE_W, SPRITE_H)


def _span(align=Align.LEFT | Align.TOP, fadein=0.0, fadeout=0.0):
    return ImageSubEntry(1.0, 3.0, [_entry(align, fadein, fadeout)])


def _player(presented=None):
    def on_present(image, position, alpha):
        if presented is not None:
            presented.append((image.size, position, alpha))

    return ImageSubPlayer(CANVAS[0], CANVAS[1], on_present)


def _loaded(align=Align.LEFT | Align.TOP, presented=None, fadein=0.0):
    player = _player(presented)
    span = _span(align, fadein)
    assert player.load(ImageSub(_sheet(), CANVAS[0], CANVAS[1], [span])) is True
    return player, span


def _bbox(player):
    return player.frame.getchannel("A").getbbox()


def _wait_until(condition, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(0.005)
    return condition()


def test_fade_alpha_full_between_fades():
    assert fade_alpha(1.0, 3.0, 0.5, 0.5, 2.0) == 255


def test_fade_alpha_zero_at_edges():
    assert fade_alpha(1.0, 3.0, 0.5, 0.5, 1.0) == 0
    assert fade_alpha(1.0, 3.0, 0.5, 0.5, 3.0) == 0


def test_fade_alpha_zero_length_fade_at_start():
    assert fade_alpha(1.0, 3.0, 0.0, 0.0, 1.0) == 0


def test_fade_alpha_rises_during_fadein():
    values = [fade_alpha(0.0, 10.0, 1.0, 1.0, t / 10) for t in range(11)]
    assert values == sorted(values)
    assert values[0] < values[-1]


def test_layout_left_top_uses_margins():
    entry = _entry()
    assert layout_entry(entry, entry.point, CANVAS, 1.0, 1.0) == (
        MARGIN_X,
        MARGIN_Y,
        SPRITE_W,
        SPRITE_H,
    )


def test_layout_right_bottom_anchors_to_edges():
    entry = _entry(Align.RIGHT | Align.BOTTOM)
    x, y, w, h = layout_entry(entry, entry.point, CANVAS, 1.0, 1.0)
    assert x + w == CANVAS[0] - MARGIN_X
    assert y + h == CANVAS[1] - MARGIN_Y


def test_layout_center_offsets_by_margin():
    entry = _entry(Align.CENTER | Align.TOP)
    x, _, w, _ = layout_entry(entry, entry.point, CANVAS, 1.0, 1.0)
    assert x - (CANVAS[0] - x - w) == 2 * MARGIN_X


def test_layout_alignment_comes_from_given_point():
    entry = _entry(Align.LEFT | Align.TOP)
    x, _, w, _ = layout_entry(entry, Point(Align.RIGHT), CANVAS, 1.0, 1.0)
    assert x + w == CANVAS[0] - MARGIN_X


def test_layout_scales_size():
    entry = _entry()
    _, _, w, h = layout_entry(entry, entry.point, CANVAS, 2.0, 2.0)
    assert (w, h) == (2 * SPRITE_W, 2 * SPRITE_H)


def test_update_draws_active_sprite():
    presented = []
    player, span = _loaded(presented=presented)
    presented.clear()
    player.update(2.0)
    assert player.frame.getpixel((MARGIN_X, MARGIN_Y)) == RED
    assert _bbox(player) == (MARGIN_X, MARGIN_Y, MARGIN_X + SPRITE_W, MARGIN_Y + SPRITE_H)
    assert player.last_entry() is span
    assert presented


def test_update_outside_span_clears():
    player, _ = _loaded()
    player.update(2.0)
    player.update(5.0)
    assert player.last_entry() is None
    assert _bbox(player) is None


def test_update_right_bottom():
    player, _ = _loaded(Align.RIGHT | Align.BOTTOM)
    player.update(2.0)
    bbox = _bbox(player)
    assert bbox[2] == CANVAS[0] - MARGIN_X
    assert bbox[3] == CANVAS[1] - MARGIN_Y


def test_update_fading_sprite_is_translucent():
    player, _ = _loaded(fadein=1.0)
    player.update(1.5)
    alpha = player.frame.getpixel((MARGIN_X, MARGIN_Y))[3]
    assert 0 < alpha < 255


def test_default_align_overrides_and_can_be_turned_off():
    player, _ = _loaded(Align.LEFT | Align.TOP)
    player.set_default_align(Align.RIGHT | Align.BOTTOM)
    player.use_default_align()
    player.update(2.0)
    assert _bbox(player)[2:] == (CANVAS[0] - MARGIN_X, CANVAS[1] - MARGIN_Y)
    player.unuse_default_align()
    player.update(2.0)
    assert _bbox(player)[:2] == (MARGIN_X, MARGIN_Y)


def test_default_align_mix_mode_combines():
    player, _ = _loaded(Align.BOTTOM)
    player.set_default_align(Align.RIGHT)
    player.use_default_align(mix_mode=True)
    player.update(2.0)
    assert _bbox(player)[2:] == (CANVAS[0] - MARGIN_X, CANVAS[1] - MARGIN_Y)


def test_default_align_replace_mode_drops_own_align():
    player, _ = _loaded(Align.BOTTOM)
    player.set_default_align(Align.RIGHT)
    player.use_default_align()
    player.update(2.0)
    bbox = _bbox(player)
    assert bbox[2] == CANVAS[0] - MARGIN_X
    assert bbox[1] == MARGIN_Y


def test_default_point_and_unuse():
    player, _ = _loaded(Align.LEFT | Align.TOP)
    player.set_default_point(Point(Align.RIGHT | Align.BOTTOM, 0, 0))
    player.use_default_point()
    player.update(2.0)
    assert _bbox(player)[2] == CANVAS[0] - MARGIN_X
    player.unuse_default_point()
    player.update(2.0)
    assert _bbox(player)[0] == MARGIN_X


def test_load_from_bytes():
    player = _player()
    data = write_xsub(None, CANVAS[0], CANVAS[1], [_span()], _sheet())
    assert player.load(data) is True
    assert player.is_loaded()
    sub = player.current_image_sub()
    assert isinstance(sub, ImageSubFile)
    assert sub.header.width == CANVAS[0]


def test_load_from_path(tmp_path):
    path = tmp_path / "sub.xsub"
    write_xsub(path, CANVAS[0], CANVAS[1], [_span()], _sheet())
    player = _player()
    assert player.load(str(path)) is True
    player.update(2.0)
    assert player.frame.getpixel((MARGIN_X, MARGIN_Y)) == RED


def test_load_malformed_raises_and_unloads():
    player, _ = _loaded()
    with pytest.raises(XsubFormatError):
        player.load(b"nope")
    assert player.is_loaded() is False


def test_load_without_entries_is_rejected():
    player = _player()
    data = write_xsub(None, CANVAS[0], CANVAS[1], [], _sheet())
    assert player.load(data) is False
    assert player.is_loaded() is False


def test_unload():
    player, _ = _loaded()
    player.unload()
    assert player.current_image_sub() is None


def test_play_without_subtitle_returns():
    player = _player()
    player.play(as_thread=False)
    assert player.is_playing() is False


def test_play_with_clock_none_does_nothing():
    player, _ = _loaded()
    player.play_with_clock(None)
    assert player.is_playing() is False


def test_play_with_clock_thread_and_stop():
    player, span = _loaded()
    player.play_with_clock(lambda: 2.0)
    assert _wait_until(lambda: player.last_entry() is span)
    assert player.is_playing() is True
    player.stop()
    assert player.is_playing() is False


def test_play_from_start_clears_after_stop():
    player, span = _loaded()
    player.play(start=2.0)
    assert _wait_until(lambda: player.last_entry() is span)
    player.stop()
    assert player.is_playing() is False
    assert _bbox(player) is None


def test_unload_ends_playback():
    player, _ = _loaded()
    player.play_with_clock(lambda: 2.0)
    assert _wait_until(player.is_playing)
    player.unload()
    assert _wait_until(lambda: not player.is_playing())