import numpy as np

from gif_recolor import mapping_table
from gif_recolor.color_keys import key_of
from gif_recolor.frames import Frame, FrameDims, expand_patch
from gif_recolor.palette_ops import ColorCount
from gif_recolor.remap import remap_frames

from conftest import BLUE, GREEN, RED


def _mapping(rgb, new_hex):
    color = ColorCount(color=key_of(rgb), count=1, rgb=rgb)
    return mapping_table.update(mapping_table.select([], color), color.color, new_hex)


def test_two_by_two_scenario(two_color_frame):
    remapped = remap_frames([two_color_frame], _mapping(RED, "#0000ff"))
    assert remapped[0].patch.tolist() == [
        0, 0, 255, 255,
        0, 0, 255, 255,
        0, 255, 0, 255,
        0, 255, 0, 255,
    ]
    assert remapped[0].color_table == [BLUE, GREEN]


def test_empty_mappings_copy_without_aliasing(transparent_frames):
    copies = remap_frames(transparent_frames, [])
    for original, copy in zip(transparent_frames, copies):
        assert copy is not original
        assert np.array_equal(copy.patch, original.patch)
        assert np.array_equal(copy.pixels, original.pixels)
        assert not np.shares_memory(copy.patch, original.patch)
        assert not np.shares_memory(copy.pixels, original.pixels)
        assert copy.color_table is not original.color_table
        expected = expand_patch(original.pixels, original.color_table, original.transparent_index)
        assert np.array_equal(copy.patch, expected)


def test_inputs_are_never_mutated(transparent_frames):
    snapshot = [(f.pixels.copy(), list(f.color_table), f.patch.copy()) for f in transparent_frames]
    remap_frames(transparent_frames, _mapping(RED, "#123456"))
    for frame, (pixels, table, patch) in zip(transparent_frames, snapshot):
        assert np.array_equal(frame.pixels, pixels)
        assert frame.color_table == table
        assert np.array_equal(frame.patch, patch)


def test_same_inputs_give_identical_output(transparent_frames):
    mappings = _mapping(RED, "#123456")
    first = remap_frames(transparent_frames, mappings)
    second = remap_frames(transparent_frames, mappings)
    for a, b in zip(first, second):
        assert a.patch.tobytes() == b.patch.tobytes()
        assert a.color_table == b.color_table


def test_mapping_applies_to_every_table(transparent_frames):
    remapped = remap_frames(transparent_frames, _mapping(RED, "#010203"))
    assert remapped[0].color_table[0] == (1, 2, 3)
    # RED sits at index 1 of the second frame's table
    assert remapped[1].color_table[1] == (1, 2, 3)
    assert remapped[1].color_table[0] == BLUE


def test_transparency_is_preserved(transparent_frames):
    # WHITE is the transparent slot of the first frame; mapping it must not show it.
    mappings = _mapping(RED, "#00ff00") + _mapping((255, 255, 255), "#000000")
    for frames in (transparent_frames, remap_frames(transparent_frames, mappings)):
        for frame in frames:
            alpha = frame.patch.reshape(-1, 4)[:, 3]
            transparent = frame.pixels == frame.transparent_index
            assert np.all(alpha[transparent] == 0)
            assert np.all(alpha[~transparent] == 255)
    remapped = remap_frames(transparent_frames, mappings)
    assert remapped[0].color_table[2] == (255, 255, 255)


def test_out_of_range_indices_render_transparent_black():
    frame = Frame.from_indices(FrameDims(width=3, height=1), [0, 5, 1], [RED, GREEN])
    remapped = remap_frames([frame], _mapping(GREEN, "#ffffff"))
    assert remapped[0].patch.tolist() == [255, 0, 0, 255, 0, 0, 0, 0, 255, 255, 255, 255]


def test_unchanged_placeholder_matches_originals(transparent_frames):
    color = ColorCount(color=key_of(RED), count=1, rgb=RED)
    remapped = remap_frames(transparent_frames, mapping_table.select([], color))
    for original, frame in zip(transparent_frames, remapped):
        assert np.array_equal(original.patch, frame.patch)


def test_select_update_remove_scenario(transparent_frames):
    color = ColorCount(color="rgb(1,2,3)", count=0, rgb=(1, 2, 3))
    mappings = mapping_table.select([], color)
    mappings = mapping_table.update(mappings, color.color, "#ffffff")
    mappings = mapping_table.remove(mappings, color.color)
    remapped = remap_frames(transparent_frames, mappings)
    baseline = remap_frames(transparent_frames, [])
    for a, b in zip(remapped, baseline):
        assert a.patch.tobytes() == b.patch.tobytes()
        assert a.color_table == b.color_table


def test_metadata_passes_through(transparent_frames):
    remapped = remap_frames(transparent_frames, _mapping(RED, "#000"))
    for original, frame in zip(transparent_frames, remapped):
        assert frame.delay == original.delay
        assert frame.disposal_type == original.disposal_type
        assert frame.transparent_index == original.transparent_index
        assert frame.dims == original.dims
        assert frame.dims is not original.dims
