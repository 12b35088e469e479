"""ffmpeg/ffprobe helpers for pulling a speech-ready audio track out of a video."""

from __future__ import annotations

import asyncio
import json
import re
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, AsyncIterator

import structlog

from copy_forge.utils.tempfiles import new_temp_path, remove_quietly

logger = structlog.get_logger()

SAMPLE_RATE_HZ = 16000
DURATION_RE = re.compile(r"Duration:\s*(\d{2}):(\d{2}):(\d{2}(?:\.\d+)?)")


@dataclass
class AudioTrack:
    path: Path
    duration: float
    sample_rate: int = SAMPLE_RATE_HZ


async def run_cmd(cmd: list[str]) -> tuple[str, str]:
    """Run a command and return (stdout, stderr); non-zero exit raises RuntimeError."""
    proc = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await proc.communicate()
    stdout_dec = stdout.decode(errors="ignore") if stdout else ""
    stderr_dec = stderr.decode(errors="ignore") if stderr else ""

    if proc.returncode != 0:
        raise RuntimeError(
            f"{cmd[0]} failed with code {proc.returncode}: {stderr_dec[-400:]}"
        )
    return stdout_dec, stderr_dec


def parse_duration(ffmpeg_output: str) -> float:
    """Read the input duration (seconds) from ffmpeg's stderr banner; 0.0 if absent."""
    match = DURATION_RE.search(ffmpeg_output)
    if not match:
        return 0.0
    hours, minutes, seconds = match.groups()
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds)


async def extract_audio(
    video_path: str | Path, temp_dir: str | Path | None = None
) -> AudioTrack:
    """Extract a 16kHz mono PCM WAV track. The caller deletes the returned file."""
    output = new_temp_path(".wav", temp_dir)
    cmd = [
        "ffmpeg",
        "-i", str(video_path),
        "-vn",
        "-acodec", "pcm_s16le",
        "-ar", str(SAMPLE_RATE_HZ),
        "-ac", "1",
        "-y",
        str(output),
    ]
    try:
        _, stderr = await run_cmd(cmd)
    except Exception:
        remove_quietly(output)
        raise

    duration = parse_duration(stderr)
    logger.info("media.audio_extracted", video=str(video_path), duration=duration)
    return AudioTrack(path=output, duration=duration)


@asynccontextmanager
async def extracted_audio(
    video_path: str | Path, temp_dir: str | Path | None = None
) -> AsyncIterator[AudioTrack]:
    """Extract audio and guarantee the WAV is removed afterwards."""
    track = await extract_audio(video_path, temp_dir)
    try:
        yield track
    finally:
        remove_quietly(track.path)


async def probe_media(path: str | Path) -> dict[str, Any]:
    """Return duration, container format and stream summary via ffprobe."""
    stdout, _ = await run_cmd([
        "ffprobe",
        "-v", "quiet",
        "-print_format", "json",
        "-show_format",
        "-show_streams",
        str(path),
    ])
    data = json.loads(stdout or "{}")
    fmt = data.get("format", {})
    streams = data.get("streams", [])
    video = next((s for s in streams if s.get("codec_type") == "video"), None)
    audio = next((s for s in streams if s.get("codec_type") == "audio"), None)
    return {
        "duration": float(fmt.get("duration", 0) or 0),
        "format": fmt.get("format_name"),
        "size": int(fmt.get("size", 0) or 0),
        "has_audio": audio is not None,
        "width": video.get("width") if video else None,
        "height": video.get("height") if video else None,
        "video_codec": video.get("codec_name") if video else None,
        "audio_codec": audio.get("codec_name") if audio else None,
    }
