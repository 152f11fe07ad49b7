from __future__ import annotations

"""Animation channel encoding tests.

Tracks are transcribed verbatim; position/rotation/scale keep their own
key counts.
"""

from spectregen.export.animation import encode_animations, encode_channel
from spectregen.scene.models import Animation, NodeAnimation, QuatKey, VectorKey
from scene_helpers import scenario_b_scene


def test_scenario_channel_keeps_track_lengths():  # noqa: N802
    (walk,) = encode_animations(scenario_b_scene().animations)
    assert walk.name == "walk"
    assert walk.ticks_per_second == 24.0
    assert walk.duration_ticks == 48.0
    (channel,) = walk.channels
    assert channel.target_node_name == "C"
    assert len(channel.position_track) == 3
    assert len(channel.rotation_track) == 1
    assert len(channel.scale_track) == 2


def test_keys_are_copied_verbatim():  # noqa: N802
    channel = NodeAnimation(
        node_name="arm",
        position_keys=(VectorKey(0.0, (1.0, 2.0, 3.0)), VectorKey(7.5, (4.0, 5.0, 6.0))),
        rotation_keys=(QuatKey(2.0, (0.5, 0.5, 0.5, 0.5)),),
    )
    record = encode_channel(channel)
    assert record.position_track == ((0.0, (1.0, 2.0, 3.0)), (7.5, (4.0, 5.0, 6.0)))
    # (w, x, y, z) order preserved
    assert record.rotation_track == ((2.0, (0.5, 0.5, 0.5, 0.5)),)
    assert record.scale_track == ()


def test_unsorted_times_are_not_reordered():  # noqa: N802
    channel = NodeAnimation(
        node_name="n",
        scale_keys=(VectorKey(5.0, (1.0, 1.0, 1.0)), VectorKey(1.0, (2.0, 2.0, 2.0))),
    )
    assert [t for t, _ in encode_channel(channel).scale_track] == [5.0, 1.0]


def test_channel_order_and_empty_animation():  # noqa: N802
    anims = (
        Animation(
            name="a",
            ticks_per_second=30.0,
            duration=10.0,
            channels=(NodeAnimation("z"), NodeAnimation("a")),
        ),
        Animation(name="idle"),
    )
    first, idle = encode_animations(anims)
    assert [c.target_node_name for c in first.channels] == ["z", "a"]
    assert idle.channels == ()
    assert idle.ticks_per_second == 0.0


def test_no_animations():  # noqa: N802
    assert encode_animations(()) == ()
