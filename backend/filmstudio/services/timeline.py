"""Timeline arithmetic for the editor: zoom, snapping, move, trim, cut and playback.

Times are in seconds (floats) here; the editor tables store milliseconds,
see ``ms_to_seconds`` / ``seconds_to_ms``.
"""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass, replace
from typing import Generic, Iterable, TypeVar

BASE_PIXELS_PER_SECOND = 50
MIN_ZOOM = 0.25
MAX_ZOOM = 5.0
ZOOM_STEP = 0.25
DEFAULT_GRID_SIZE = 0.5
MIN_CLIP_DURATION = 0.5
MIN_CLIP_WIDTH_PX = 50


@dataclass(frozen=True)
class TimelineClip:
    id: int
    start: float
    duration: float
    name: str = ""
    track: int = 1

    @property
    def end(self) -> float:
        return self.start + self.duration


# ---------------------------------------------------------------------------
# Units and zoom
# ---------------------------------------------------------------------------

def ms_to_seconds(ms: int) -> float:
    return ms / 1000.0


def seconds_to_ms(seconds: float) -> int:
    return int(round(seconds * 1000))


def clamp_zoom(zoom: float) -> float:
    return max(MIN_ZOOM, min(MAX_ZOOM, zoom))


def zoom_in(zoom: float) -> float:
    return clamp_zoom(zoom + ZOOM_STEP)


def zoom_out(zoom: float) -> float:
    return clamp_zoom(zoom - ZOOM_STEP)


def pixels_per_second(zoom: float = 1.0) -> float:
    return BASE_PIXELS_PER_SECOND * clamp_zoom(zoom)


def time_to_pixels(seconds: float, zoom: float = 1.0) -> float:
    return seconds * pixels_per_second(zoom)


def pixels_to_time(pixels: float, zoom: float = 1.0) -> float:
    return pixels / pixels_per_second(zoom)


def clip_width(duration: float, zoom: float = 1.0) -> float:
    """Rendered width of a clip; short clips stay grabbable."""
    return max(MIN_CLIP_WIDTH_PX, time_to_pixels(duration, zoom))


def snap_to_grid(
    seconds: float, grid_size: float = DEFAULT_GRID_SIZE, enabled: bool = True
) -> float:
    """Round to the nearest grid line, halves rounding up."""
    if not enabled or grid_size <= 0:
        return seconds
    return math.floor(seconds / grid_size + 0.5) * grid_size


# ---------------------------------------------------------------------------
# Clip edits
# ---------------------------------------------------------------------------

def move_clip(
    clip: TimelineClip,
    delta: float,
    *,
    snap: bool = True,
    grid_size: float = DEFAULT_GRID_SIZE,
) -> TimelineClip:
    new_start = snap_to_grid(max(0.0, clip.start + delta), grid_size, snap)
    return replace(clip, start=new_start)


def trim_left(clip: TimelineClip, delta: float) -> TimelineClip:
    """Move the in-point; the right edge stays put.

    The edit is rejected (clip returned unchanged) when the remaining
    duration would not exceed the minimum.
    """
    new_start = max(0.0, clip.start + delta)
    new_duration = clip.duration - (new_start - clip.start)
    if new_duration <= MIN_CLIP_DURATION:
        return clip
    return replace(clip, start=new_start, duration=new_duration)


def trim_right(clip: TimelineClip, delta: float) -> TimelineClip:
    return replace(clip, duration=max(MIN_CLIP_DURATION, clip.duration + delta))


def cut_clip(
    clips: list[TimelineClip], clip_id: int, playhead: float
) -> list[TimelineClip]:
    """Split a clip at the playhead into "(Part 1)" and "(Part 2)".

    The playhead must fall strictly inside the clip. The second part gets
    the next free id.
    """
    target = next((c for c in clips if c.id == clip_id), None)
    if target is None:
        raise ValueError(f"Clip {clip_id} not found")
    if not target.start < playhead < target.end:
        raise ValueError("Playhead must be inside the clip to cut")

    first = replace(
        target,
        duration=playhead - target.start,
        name=f"{target.name} (Part 1)",
    )
    second = replace(
        target,
        id=max(c.id for c in clips) + 1,
        start=playhead,
        duration=target.end - playhead,
        name=f"{target.name} (Part 2)",
    )

    result: list[TimelineClip] = []
    for c in clips:
        if c.id == clip_id:
            result += [first, second]
        else:
            result.append(c)
    return result


def next_clip_order(orders: Iterable[int]) -> int:
    return max(orders, default=0) + 1


# ---------------------------------------------------------------------------
# Playback
# ---------------------------------------------------------------------------

def timeline_duration(clips: Iterable[TimelineClip]) -> float:
    return max((c.end for c in clips), default=0.0)


def sorted_by_start(clips: Iterable[TimelineClip]) -> list[TimelineClip]:
    return sorted(clips, key=lambda c: c.start)


def find_clip_at(clips: Iterable[TimelineClip], seconds: float) -> TimelineClip | None:
    for clip in sorted_by_start(clips):
        if clip.start <= seconds < clip.end:
            return clip
    return None


def clip_time_offset(clip: TimelineClip, seconds: float) -> float:
    return max(0.0, min(seconds - clip.start, clip.duration))


def adjacent_clip(
    clips: Iterable[TimelineClip], current: TimelineClip, step: int = 1
) -> TimelineClip | None:
    """Next (step=1) or previous (step=-1) clip in playback order."""
    ordered = sorted_by_start(clips)
    ids = [c.id for c in ordered]
    if current.id not in ids:
        return None
    index = ids.index(current.id) + step
    if 0 <= index < len(ordered):
        return ordered[index]
    return None


# ---------------------------------------------------------------------------
# Undo / redo
# ---------------------------------------------------------------------------

S = TypeVar("S")


class EditHistory(Generic[S]):
    """Linear undo/redo stack of timeline snapshots.

    Pushing after an undo discards the redo branch. The oldest snapshots
    are dropped once ``max_size`` is exceeded.
    """

    def __init__(self, initial: S, max_size: int = 50):
        self._states: list[S] = [copy.deepcopy(initial)]
        self._index = 0
        self.max_size = max_size

    @property
    def current(self) -> S:
        return copy.deepcopy(self._states[self._index])

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        return self._index < len(self._states) - 1

    def __len__(self) -> int:
        return len(self._states)

    def push(self, state: S) -> None:
        del self._states[self._index + 1:]
        self._states.append(copy.deepcopy(state))
        if len(self._states) > self.max_size:
            del self._states[0]
        self._index = len(self._states) - 1

    def undo(self) -> S:
        if self.can_undo:
            self._index -= 1
        return self.current

    def redo(self) -> S:
        if self.can_redo:
            self._index += 1
        return self.current
