#!/usr/bin/env python3
"""Media probing and audio preparation through ffmpeg."""

import os
import tempfile
from typing import Optional, Tuple

import ffmpeg

# Formats pygame.mixer.music can stream directly
PLAYABLE_AUDIO_EXTENSIONS = {".wav", ".ogg", ".mp3", ".flac", ".opus"}


class MediaProbe:
    """Class to read stream metadata and convert audio with ffmpeg."""

    def __init__(self, ffmpeg_path: str = "ffmpeg"):
        """Initialize the probe.

        Args:
            ffmpeg_path: ffmpeg executable; ffprobe is looked up next to it
        """
        self.ffmpeg_path = ffmpeg_path
        ffmpeg_dir, ffmpeg_name = os.path.split(ffmpeg_path)
        self.ffprobe_path = os.path.join(ffmpeg_dir, ffmpeg_name.replace("ffmpeg", "ffprobe"))

    def duration(self, media_file: str) -> Optional[float]:
        """Duration of a media file in seconds.

        Args:
            media_file: Path to an audio or video file

        Returns:
            Duration in seconds, or None if it could not be determined
        """
        try:
            info = ffmpeg.probe(media_file, cmd=self.ffprobe_path)
        except ffmpeg.Error as e:
            stderr = e.stderr.decode(errors="replace") if e.stderr else e
            print(f"MediaProbe: Error probing {media_file}: {stderr}")
            return None
        except OSError as e:
            print(f"MediaProbe: ffprobe not available: {e}")
            return None

        duration = info.get("format", {}).get("duration")
        if duration is None:
            streams = [s for s in info.get("streams", []) if s.get("duration")]
            duration = streams[0]["duration"] if streams else None
        try:
            return float(duration) if duration is not None else None
        except ValueError:
            return None

    def video_size(self, video_file: str) -> Optional[Tuple[int, int]]:
        """Width and height of the first video stream, or None."""
        try:
            info = ffmpeg.probe(video_file, cmd=self.ffprobe_path, select_streams="v:0")
        except (ffmpeg.Error, OSError) as e:
            print(f"MediaProbe: Error probing video {video_file}: {e}")
            return None

        for stream in info.get("streams", []):
            if stream.get("codec_type") == "video" and stream.get("width") and stream.get("height"):
                return int(stream["width"]), int(stream["height"])
        return None

    def ensure_playable(self, audio_file: str, output_dir: Optional[str] = None) -> Optional[str]:
        """Return a path pygame can play, converting to WAV when needed.

        Args:
            audio_file: Path to the input audio (or video) file
            output_dir: Where to write a converted file; a temp dir if None

        Returns:
            Path to a playable file, or None if conversion failed
        """
        if os.path.splitext(audio_file)[1].lower() in PLAYABLE_AUDIO_EXTENSIONS:
            return audio_file

        if output_dir is None:
            output_dir = tempfile.mkdtemp(prefix="lyric_mv_")
        base_name = os.path.splitext(os.path.basename(audio_file))[0]
        output_file = os.path.join(output_dir, f"{base_name}.wav")

        try:
            (
                ffmpeg.input(audio_file)
                .output(output_file, ar=44100, ac=2, format="wav")
                .run(cmd=self.ffmpeg_path, quiet=True, overwrite_output=True)
            )
            print(f"MediaProbe: Converted {audio_file} to {output_file}")
            return output_file
        except (ffmpeg.Error, OSError) as e:
            print(f"MediaProbe: Error converting {audio_file} to WAV: {e}")
            return None
