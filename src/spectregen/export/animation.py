"""Animation keyframe transcription.

Tracks are copied verbatim: no interpolation, resampling, or cross-track
length checks. Position, rotation and scale tracks keep their own key
counts and players interpolate at runtime.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence, Tuple

from ..scene.models import Animation, NodeAnimation, QuatKey, VectorKey

Vector3Track = Tuple[Tuple[float, Tuple[float, float, float]], ...]
QuatTrack = Tuple[Tuple[float, Tuple[float, float, float, float]], ...]


@dataclass(frozen=True, slots=True)
class ChannelRecord:
    target_node_name: str
    position_track: Vector3Track
    rotation_track: QuatTrack  # (w, x, y, z)
    scale_track: Vector3Track


@dataclass(frozen=True, slots=True)
class AnimationRecord:
    name: str
    ticks_per_second: float
    duration_ticks: float
    channels: Tuple[ChannelRecord, ...]


def _track(keys: Sequence[VectorKey] | Sequence[QuatKey]) -> tuple:
    return tuple((float(k.time), tuple(float(v) for v in k.value)) for k in keys)


def encode_channel(channel: NodeAnimation) -> ChannelRecord:
    return ChannelRecord(
        target_node_name=channel.node_name,
        position_track=_track(channel.position_keys),
        rotation_track=_track(channel.rotation_keys),
        scale_track=_track(channel.scale_keys),
    )


def encode_animations(
    animations: Sequence[Animation],
) -> Tuple[AnimationRecord, ...]:
    return tuple(
        AnimationRecord(
            name=anim.name,
            ticks_per_second=float(anim.ticks_per_second),
            duration_ticks=float(anim.duration),
            channels=tuple(encode_channel(ch) for ch in anim.channels),
        )
        for anim in animations
    )


__all__ = [
    "ChannelRecord",
    "AnimationRecord",
    "encode_channel",
    "encode_animations",
]
