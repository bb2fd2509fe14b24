#!/usr/bin/env python3
"""Muted, looping background video decoded by an ffmpeg subprocess."""

import subprocess
import time
from typing import Callable, Optional, Tuple

import ffmpeg
import pygame

from lyric_mv.errors import PlaybackCommandError

# How far behind the decoder may fall before it is restarted at the right spot
MAX_CATCH_UP_SECONDS = 2.0


class BackgroundVideo:
    """Secondary media stream for the background layer.

    The stream keeps its own clock, which advances with wall-clock time while
    playing and wraps around at the end of the file. Frames are read from an
    ffmpeg rawvideo pipe that is restarted whenever the position jumps.
    """

    loop = True

    def __init__(
        self,
        video_path: str,
        size: Tuple[int, int],
        duration: Optional[float] = None,
        fps: int = 30,
        ffmpeg_path: str = "ffmpeg",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the stream.

        Args:
            video_path: Path to the video file
            size: Output frame size (width, height)
            duration: Video duration in seconds, if known
            fps: Decoding frame rate
            ffmpeg_path: ffmpeg executable
            clock: Monotonic time source
        """
        self.video_path = video_path
        self.width, self.height = size
        self._duration = duration if duration and duration > 0 else None
        self.fps = fps
        self.ffmpeg_path = ffmpeg_path
        self.clock = clock

        self.paused = True
        self._position = 0.0
        self._resumed_at = 0.0

        self._process: Optional[subprocess.Popen] = None
        self._process_start = 0.0
        self._frames_read = 0
        self._frame: Optional[pygame.Surface] = None

    @property
    def duration(self) -> Optional[float]:
        return self._duration

    @property
    def frame_size(self) -> int:
        return self.width * self.height * 3

    def _wrap(self, position: float) -> float:
        if self._duration:
            return position % self._duration
        return max(0.0, position)

    @property
    def current_time(self) -> float:
        if self.paused:
            return self._position
        return self._wrap(self._position + self.clock() - self._resumed_at)

    def play(self) -> None:
        """Start the stream clock and the decoder.

        Raises:
            PlaybackCommandError: If ffmpeg cannot be started
        """
        if not self.paused:
            return
        if self._process is None:
            self._start_decoder(self._position)
        self._resumed_at = self.clock()
        self.paused = False

    def pause(self) -> None:
        if self.paused:
            return
        self._position = self.current_time
        self.paused = True

    def seek(self, time: float) -> None:
        self._position = self._wrap(time)
        self._resumed_at = self.clock()
        # The decoder restarts lazily at the new position
        self._stop_decoder()

    def _start_decoder(self, position: float) -> None:
        try:
            self._process = (
                ffmpeg.input(self.video_path, ss=position)
                .output(
                    "pipe:",
                    format="rawvideo",
                    pix_fmt="rgb24",
                    s=f"{self.width}x{self.height}",
                    r=self.fps,
                    an=None,
                )
                .global_args("-loglevel", "error")
                .run_async(cmd=self.ffmpeg_path, pipe_stdout=True, pipe_stderr=False)
            )
        except OSError as e:
            self._process = None
            raise PlaybackCommandError(f"Cannot start ffmpeg for {self.video_path}: {e}") from e
        self._process_start = position
        self._frames_read = 0

    def _stop_decoder(self) -> None:
        if self._process is not None:
            self._process.kill()
            self._process.wait()
            self._process = None

    def _read_raw_frame(self) -> Optional[bytes]:
        raw = self._process.stdout.read(self.frame_size)
        if len(raw) < self.frame_size:
            return None
        self._frames_read += 1
        return raw

    def read_frame(self) -> Optional[pygame.Surface]:
        """Frame matching the stream clock, or the last one while paused.

        Returns:
            A pygame Surface of the configured size, or None before the first frame
        """
        if self.paused and self._frame is not None:
            return self._frame

        position = self.current_time
        offset = position - self._process_start
        if self._process is None or offset < 0 or offset > MAX_CATCH_UP_SECONDS + self._frames_read / self.fps:
            self._stop_decoder()
            try:
                self._start_decoder(position)
            except PlaybackCommandError as e:
                print(f"BackgroundVideo: {e}")
                return self._frame
            offset = 0.0

        target_frame = int(offset * self.fps)
        raw = None
        while self._frames_read <= target_frame:
            raw = self._read_raw_frame()
            if raw is None:
                # End of file: loop back to the start on the next call
                self._stop_decoder()
                if self._duration is None:
                    self._duration = max(position, 1.0 / self.fps)
                break

        if raw is not None:
            self._frame = pygame.image.frombuffer(raw, (self.width, self.height), "RGB")
        return self._frame

    def close(self) -> None:
        self._stop_decoder()
        self.paused = True
