"""Tests for the ffmpeg/ffprobe helpers."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import pytest

from copy_forge.core.media import extract_audio, extracted_audio, parse_duration, probe_media

FFMPEG_BANNER = """
Input #0, mov,mp4,m4a,3gp,3g2,mj2, from 'clip.mp4':
  Duration: 00:01:05.48, start: 0.000000, bitrate: 1205 kb/s
"""


def test_parse_duration():
    assert parse_duration(FFMPEG_BANNER) == pytest.approx(65.48)
    assert parse_duration("no banner here") == 0.0


@pytest.mark.asyncio
async def test_extract_audio_builds_command(tmp_path):
    run = AsyncMock(return_value=("", FFMPEG_BANNER))
    with patch("copy_forge.core.media.run_cmd", run):
        track = await extract_audio(tmp_path / "clip.mp4", tmp_path)

    cmd = run.call_args[0][0]
    assert cmd[0] == "ffmpeg"
    assert cmd[cmd.index("-ar") + 1] == "16000"
    assert cmd[cmd.index("-ac") + 1] == "1"
    assert cmd[cmd.index("-acodec") + 1] == "pcm_s16le"
    assert track.path.suffix == ".wav"
    assert track.path.parent == tmp_path
    assert track.duration == pytest.approx(65.48)


@pytest.mark.asyncio
async def test_extracted_audio_removes_wav(tmp_path):
    async def fake_run(cmd):
        (tmp_path / cmd[-1].split("/")[-1]).write_bytes(b"RIFF")
        return "", FFMPEG_BANNER

    with patch("copy_forge.core.media.run_cmd", side_effect=fake_run):
        async with extracted_audio(tmp_path / "clip.mp4", tmp_path) as track:
            assert track.path.exists()
    assert not track.path.exists()


@pytest.mark.asyncio
async def test_failed_extraction_leaves_nothing(tmp_path):
    with patch("copy_forge.core.media.run_cmd", AsyncMock(side_effect=RuntimeError("ffmpeg failed"))):
        with pytest.raises(RuntimeError):
            await extract_audio(tmp_path / "clip.mp4", tmp_path)
    assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
async def test_probe_media():
    probe = {
        "format": {"duration": "12.5", "format_name": "mov,mp4", "size": "2048"},
        "streams": [
            {"codec_type": "video", "codec_name": "h264", "width": 1080, "height": 1920},
            {"codec_type": "audio", "codec_name": "aac"},
        ],
    }
    with patch("copy_forge.core.media.run_cmd", AsyncMock(return_value=(json.dumps(probe), ""))):
        info = await probe_media("clip.mp4")

    assert info["duration"] == 12.5
    assert info["has_audio"] is True
    assert (info["width"], info["height"]) == (1080, 1920)
    assert info["audio_codec"] == "aac"


@pytest.mark.asyncio
async def test_probe_media_silent_video():
    probe = {"format": {"duration": "3"}, "streams": [{"codec_type": "video"}]}
    with patch("copy_forge.core.media.run_cmd", AsyncMock(return_value=(json.dumps(probe), ""))):
        info = await probe_media("clip.mp4")
    assert info["has_audio"] is False
    assert info["audio_codec"] is None
