#!/usr/bin/env python3
"""Keeps a secondary media stream (background video) aligned with the audio clock."""

from dataclasses import dataclass, field
from typing import List, Optional, Protocol

from lyric_mv.errors import PlaybackCommandError

DEFAULT_DRIFT_TOLERANCE = 0.5


class SecondaryStream(Protocol):
    """What the controller needs from a stream it chases the audio clock with."""

    paused: bool
    loop: bool

    @property
    def current_time(self) -> float: ...

    @property
    def duration(self) -> Optional[float]: ...

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def seek(self, time: float) -> None: ...


@dataclass
class SyncResult:
    commands: List[str] = field(default_factory=list)
    seek_to: Optional[float] = None
    error: Optional[PlaybackCommandError] = None

    @property
    def idle(self) -> bool:
        return not self.commands and self.error is None


class SecondaryStreamSync:
    """Mirrors play/pause onto a secondary stream and corrects its drift."""

    def __init__(self, stream: SecondaryStream, tolerance: float = DEFAULT_DRIFT_TOLERANCE) -> None:
        """Initialize the controller.

        Args:
            stream: The secondary stream to drive
            tolerance: Allowed distance in seconds before the stream is re-seeked
        """
        self.stream = stream
        self.tolerance = tolerance
        self.last_error: Optional[PlaybackCommandError] = None
        self._play_blocked = False

    def target_time(self, time: float) -> float:
        """Position in the stream's own timeline that matches primary ``time``."""
        duration = self.stream.duration
        if self.stream.loop and duration and duration > 0:
            return time % duration
        return time

    def drift(self, time: float) -> float:
        """Signed distance of the stream from primary ``time``.

        On a looping stream of known duration the distance is measured around
        the loop, so a stream just before its end and a target just after the
        loop point are close together.
        """
        difference = self.stream.current_time - self.target_time(time)
        duration = self.stream.duration
        if self.stream.loop and duration and duration > 0:
            difference = (difference + duration / 2) % duration - duration / 2
        return difference

    def retry_play(self) -> None:
        """Allow one more play attempt after a rejected one (explicit user play)."""
        self._play_blocked = False

    def sync(self, time: float, is_playing: bool) -> SyncResult:
        """Bring the stream in line with one snapshot of the primary clock.

        Calling it again with the same inputs issues no further commands. A
        rejected play is reported once in the result and not retried on later
        ticks until ``retry_play`` is called.

        Args:
            time: Primary clock time in seconds
            is_playing: Whether the primary clock is playing

        Returns:
            SyncResult describing the commands issued on this call
        """
        result = SyncResult()
        stream = self.stream

        if is_playing and stream.paused:
            if not self._play_blocked:
                try:
                    stream.play()
                    result.commands.append("play")
                    self.last_error = None
                except PlaybackCommandError as e:
                    print(f"SecondaryStreamSync: Video play rejected: {e}")
                    self._play_blocked = True
                    self.last_error = e
                    result.error = e
        elif not is_playing:
            # A pause clears any earlier refusal, the next play starts fresh
            self._play_blocked = False
            if not stream.paused:
                stream.pause()
                result.commands.append("pause")

        target = self.target_time(time)
        drift = self.drift(time)
        if abs(drift) > self.tolerance:
            print(f"SecondaryStreamSync: Drift {drift:+.2f}s, seeking video to {target:.2f}s")
            stream.seek(target)
            result.commands.append("seek")
            result.seek_to = target

        return result
