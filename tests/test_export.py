"""
Tests for the XML export and ffmpeg command assembly.
"""

import subprocess
import xml.etree.ElementTree as ET
from unittest.mock import MagicMock, patch

import pytest

from filmstudio.services import export_service
from filmstudio.services.export_service import (
    ExportShot,
    build_animatic_command,
    build_fcpxml,
    build_render_command,
)


@pytest.fixture
def shots():
    return [
        ExportShot(id=1, title="Opening", image_url="/media/1/images/a.png"),
        ExportShot(
            id=2,
            title="Run",
            image_url="/media/1/images/b.png",
            video_url="/media/1/videos/veo3_b.mp4",
            duration=6,
        ),
    ]


def _parse(xml: str) -> ET.Element:
    body = xml.split("<!DOCTYPE xmeml>\n", 1)[1]
    return ET.fromstring(body)


class TestBuildFcpxml:
    def test_header(self, shots):
        xml = build_fcpxml("Launch Spot", shots)
        assert xml.startswith('<?xml version="1.0" encoding="UTF-8"?>\n<!DOCTYPE xmeml>\n')

    def test_sequence(self, shots):
        root = _parse(build_fcpxml("Launch Spot", shots))

        assert root.tag == "xmeml"
        assert root.get("version") == "5"
        sequence = root.find("sequence")
        assert sequence.get("id") == "sequence-1"
        assert sequence.findtext("name") == "Launch Spot"
        assert sequence.findtext("duration") == str(4 * 24 + 6 * 24)
        assert sequence.findtext("rate/timebase") == "24"
        assert sequence.findtext("rate/ntsc") == "FALSE"
        chars = sequence.find("media/video/format/samplecharacteristics")
        assert chars.findtext("width") == "1920"
        assert chars.findtext("pixelaspectratio") == "square"

    def test_clipitems_laid_end_to_end(self, shots):
        root = _parse(build_fcpxml("Launch Spot", shots))
        items = root.findall("sequence/media/video/track/clipitem")

        assert [i.get("id") for i in items] == ["clipitem-0", "clipitem-1"]
        assert [i.findtext("start") for i in items] == ["0", "96"]
        assert [i.findtext("end") for i in items] == ["96", "240"]
        assert items[1].findtext("out") == "144"

    def test_file_prefers_video(self, shots):
        root = _parse(build_fcpxml("Launch Spot", shots))
        files = root.findall("sequence/media/video/track/clipitem/file")

        assert files[0].findtext("pathurl") == "/media/1/images/a.png"
        assert files[0].findtext("name") == "a.png"
        assert files[1].findtext("pathurl") == "/media/1/videos/veo3_b.mp4"
        assert files[1].get("id") == "file-1"

    def test_missing_media_name_falls_back(self):
        root = _parse(build_fcpxml("X", [ExportShot(id=9, title="", image_url="")]))
        item = root.find("sequence/media/video/track/clipitem")
        assert item.findtext("name") == "Shot 1"
        assert item.findtext("file/name") == "shot-9"

    def test_escapes_names(self):
        xml = build_fcpxml("Tom & Jerry <cut>", [])
        assert "Tom &amp; Jerry &lt;cut&gt;" in xml
        assert _parse(xml).findtext("sequence/duration") == "0"


class TestAnimaticCommand:
    def test_frames_and_concat(self):
        cmd = build_animatic_command([("a.png", 2.0), ("b.png", 1.5)], "out.mp4")

        assert cmd[:2] == ["ffmpeg", "-y"]
        assert cmd[2:8] == ["-loop", "1", "-t", "2", "-i", "a.png"]
        assert cmd[8:14] == ["-loop", "1", "-t", "1.5", "-i", "b.png"]
        graph = cmd[cmd.index("-filter_complex") + 1]
        assert graph.endswith("[v0][v1]concat=n=2:v=1:a=0[v]")
        assert "scale=1920:1080" in graph
        assert cmd[-1] == "out.mp4"
        assert "-shortest" not in cmd

    def test_audio_track(self):
        cmd = build_animatic_command(
            [("a.png", 2.0)], "out.mp4", audio_source="music.mp3", audio_volume=50
        )

        assert cmd[cmd.index("music.mp3") - 1] == "-i"
        graph = cmd[cmd.index("-filter_complex") + 1]
        assert "[1:a]volume=0.5[a]" in graph
        assert "-shortest" in cmd

    def test_no_frames(self):
        with pytest.raises(ValueError):
            build_animatic_command([], "out.mp4")


class TestRenderCommand:
    def test_images_held_videos_trimmed(self):
        cmd = build_render_command(
            [("still.png", "image", 0.0, 2.0), ("clip.mp4", "video", 1.5, 3.0)],
            "edit.mp4",
            fps=30,
            size=(1280, 720),
        )

        assert ["-loop", "1", "-t", "2", "-i", "still.png"] == cmd[2:8]
        assert ["-ss", "1.5", "-t", "3", "-i", "clip.mp4"] == cmd[8:14]
        assert "scale=1280:720" in cmd[cmd.index("-filter_complex") + 1]
        assert cmd[-3:] == ["-r", "30", "edit.mp4"]

    def test_no_clips(self):
        with pytest.raises(ValueError):
            build_render_command([], "edit.mp4")


class TestRunFfmpeg:
    def test_failure_raises(self):
        failed = MagicMock(returncode=1, stderr="boom")
        with patch.object(export_service.subprocess, "run", return_value=failed) as run:
            with pytest.raises(RuntimeError):
                export_service._run_ffmpeg(["ffmpeg", "-version"])
        run.assert_called_once()

    def test_success(self):
        ok = MagicMock(returncode=0, stderr="")
        with patch.object(export_service.subprocess, "run", return_value=ok):
            export_service._run_ffmpeg(["ffmpeg", "-version"])

    def test_timeout_propagates(self):
        with patch.object(
            export_service.subprocess,
            "run",
            side_effect=subprocess.TimeoutExpired("ffmpeg", 1),
        ):
            with pytest.raises(subprocess.TimeoutExpired):
                export_service._run_ffmpeg(["ffmpeg"], timeout=1)
