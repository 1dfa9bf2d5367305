"""
Tests for timeline arithmetic.
"""

import pytest

from filmstudio.services import timeline
from filmstudio.services.timeline import EditHistory, TimelineClip


@pytest.fixture
def clips():
    return [
        TimelineClip(id=1, start=0.0, duration=2.0, name="Intro"),
        TimelineClip(id=2, start=2.0, duration=3.0, name="Hero"),
        TimelineClip(id=3, start=6.0, duration=1.0, name="Logo"),
    ]


class TestZoom:
    def test_zoom_is_clamped(self):
        assert timeline.zoom_in(5.0) == 5.0
        assert timeline.zoom_out(0.25) == 0.25
        assert timeline.zoom_in(1.0) == 1.25

    def test_pixel_conversion(self):
        assert timeline.time_to_pixels(2.0) == 100
        assert timeline.time_to_pixels(2.0, zoom=2.0) == 200
        assert timeline.pixels_to_time(100) == 2.0

    def test_short_clips_keep_minimum_width(self):
        assert timeline.clip_width(0.1) == timeline.MIN_CLIP_WIDTH_PX
        assert timeline.clip_width(4.0) == 200

    def test_ms_round_trip(self):
        assert timeline.ms_to_seconds(1500) == 1.5
        assert timeline.seconds_to_ms(1.5) == 1500


class TestSnapping:
    def test_snaps_to_nearest_half_second(self):
        assert timeline.snap_to_grid(1.24) == 1.0
        assert timeline.snap_to_grid(1.25) == 1.5

    def test_disabled_snap(self):
        assert timeline.snap_to_grid(1.24, enabled=False) == 1.24
        assert timeline.snap_to_grid(1.24, grid_size=0) == 1.24


class TestClipEdits:
    def test_move_snaps_and_clamps(self, clips):
        assert timeline.move_clip(clips[0], 1.7).start == 1.5
        assert timeline.move_clip(clips[1], -5.0).start == 0.0
        assert timeline.move_clip(clips[0], 0.3, snap=False).start == 0.3

    def test_trim_left_keeps_right_edge(self, clips):
        trimmed = timeline.trim_left(clips[1], 1.0)
        assert trimmed.start == 3.0
        assert trimmed.duration == 2.0
        assert trimmed.end == clips[1].end

    def test_trim_left_rejects_too_short(self, clips):
        assert timeline.trim_left(clips[1], 2.6) == clips[1]

    def test_trim_left_stops_at_zero(self, clips):
        trimmed = timeline.trim_left(clips[1], -5.0)
        assert trimmed.start == 0.0
        assert trimmed.duration == 5.0

    def test_trim_right_minimum(self, clips):
        assert timeline.trim_right(clips[1], -10.0).duration == timeline.MIN_CLIP_DURATION
        assert timeline.trim_right(clips[1], 1.0).duration == 4.0


class TestCut:
    def test_cut_inside_clip(self, clips):
        result = timeline.cut_clip(clips, 2, 3.0)

        assert [c.id for c in result] == [1, 2, 4, 3]
        first, second = result[1], result[2]
        assert first.name == "Hero (Part 1)"
        assert first.start == 2.0 and first.duration == 1.0
        assert second.name == "Hero (Part 2)"
        assert second.start == 3.0 and second.duration == 2.0

    @pytest.mark.parametrize("playhead", [2.0, 5.0, 9.0])
    def test_cut_at_edge_or_outside_fails(self, clips, playhead):
        with pytest.raises(ValueError):
            timeline.cut_clip(clips, 2, playhead)

    def test_cut_unknown_clip(self, clips):
        with pytest.raises(ValueError, match="not found"):
            timeline.cut_clip(clips, 99, 1.0)

    def test_next_clip_order(self):
        assert timeline.next_clip_order([]) == 1
        assert timeline.next_clip_order([3, 1, 2]) == 4


class TestPlayback:
    def test_duration_and_lookup(self, clips):
        assert timeline.timeline_duration(clips) == 7.0
        assert timeline.timeline_duration([]) == 0.0
        assert timeline.find_clip_at(clips, 2.5).id == 2
        assert timeline.find_clip_at(clips, 5.5) is None

    def test_offset_is_clamped(self, clips):
        assert timeline.clip_time_offset(clips[1], 3.0) == 1.0
        assert timeline.clip_time_offset(clips[1], 10.0) == 3.0
        assert timeline.clip_time_offset(clips[1], 0.0) == 0.0

    def test_adjacent_clip(self, clips):
        assert timeline.adjacent_clip(clips, clips[0]).id == 2
        assert timeline.adjacent_clip(clips, clips[0], step=-1) is None
        assert timeline.adjacent_clip(clips, clips[2]) is None


class TestEditHistory:
    def test_undo_redo(self):
        history = EditHistory([1])
        history.push([1, 2])
        history.push([1, 2, 3])

        assert history.undo() == [1, 2]
        assert history.undo() == [1]
        assert not history.can_undo
        assert history.redo() == [1, 2]

    def test_push_discards_redo_branch(self):
        history = EditHistory("a")
        history.push("b")
        history.undo()
        history.push("c")

        assert not history.can_redo
        assert len(history) == 2
        assert history.current == "c"

    def test_max_size_drops_oldest(self):
        history = EditHistory(0, max_size=3)
        for i in range(1, 6):
            history.push(i)

        assert len(history) == 3
        assert history.undo() == 4
        assert history.undo() == 3
        assert not history.can_undo

    def test_snapshots_are_copies(self):
        state = {"clips": [1]}
        history = EditHistory(state)
        state["clips"].append(2)
        assert history.current == {"clips": [1]}
