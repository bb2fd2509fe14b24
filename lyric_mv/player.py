#!/usr/bin/env python3
"""Player module providing the audio clock that drives lyric synchronization."""

import os
from dataclasses import dataclass
from typing import Optional

# Set environment variable to hide pygame welcome message
os.environ["PYGAME_HIDE_SUPPORT_PROMPT"] = "1"

import pygame  # noqa: E402

from lyric_mv.errors import PlaybackCommandError  # noqa: E402

SONG_ENDED = "SONG_ENDED"


@dataclass(frozen=True)
class ClockSnapshot:
    """One consistent reading of the playback clock, taken once per tick."""

    time: float
    duration: float
    is_playing: bool


class AudioPlayer:
    """Audio playback over pygame.mixer.music; the only writer of the playback clock."""

    def __init__(self) -> None:
        if not pygame.mixer.get_init():
            pygame.mixer.init()

        self.audio_path: Optional[str] = None
        self.total_duration = 0.0
        self.playing = False

        # Position the current mixer run started from; get_pos() counts from here
        self._seek_base = 0.0
        # True while the mixer holds a started (possibly paused) stream
        self._started = False
        # A seek while paused; the next play restarts the stream at _seek_base
        self._restart_pending = False
        self._ended = False

    def load(self, audio_path: str, duration: Optional[float] = None) -> bool:
        """Load an audio file for playback.

        Args:
            audio_path: Path to an audio file pygame can stream
            duration: Duration in seconds if already known (e.g. from ffprobe)

        Returns:
            True if loading was successful, False otherwise
        """
        self.stop()
        try:
            print(f"AudioPlayer: Loading audio: {audio_path}")
            pygame.mixer.music.load(audio_path)
        except pygame.error as e:
            print(f"AudioPlayer: Error loading audio: {e}")
            self.audio_path = None
            self.total_duration = 0.0
            return False

        self.audio_path = audio_path
        if duration is None:
            # pygame only reports the length of fully decoded sounds
            try:
                duration = pygame.mixer.Sound(audio_path).get_length()
            except pygame.error:
                duration = 0.0
        self.total_duration = max(0.0, duration)
        print(f"AudioPlayer: Total song duration: {int(self.total_duration//60):02d}:{int(self.total_duration%60):02d}")
        return True

    @property
    def is_playing(self) -> bool:
        return self.playing

    @property
    def current_time(self) -> float:
        if not self._started or self._restart_pending:
            position = self._seek_base
        else:
            elapsed_ms = pygame.mixer.music.get_pos()
            position = self._seek_base + max(0, elapsed_ms) / 1000.0
        if self.total_duration > 0:
            position = min(position, self.total_duration)
        return position

    def snapshot(self) -> ClockSnapshot:
        return ClockSnapshot(time=self.current_time, duration=self.total_duration, is_playing=self.playing)

    def play(self) -> None:
        """Start or resume playback.

        Raises:
            PlaybackCommandError: If nothing is loaded or the mixer refuses to play
        """
        if not self.audio_path:
            raise PlaybackCommandError("No audio loaded")
        if self.playing:
            return

        if self._ended:
            self._seek_base = 0.0
            self._ended = False
            self._started = False

        try:
            if self._started and not self._restart_pending:
                pygame.mixer.music.unpause()
            else:
                pygame.mixer.music.play(start=self._seek_base)
        except pygame.error as e:
            self.playing = False
            raise PlaybackCommandError(f"Playback refused: {e}") from e

        self._started = True
        self._restart_pending = False
        self.playing = True
        print("AudioPlayer: Playing.")

    def pause(self) -> None:
        if not self.playing:
            return
        # get_pos() stops advancing while the mixer is paused
        pygame.mixer.music.pause()
        self.playing = False
        print("AudioPlayer: Paused.")

    def toggle(self) -> bool:
        """Toggle play/pause.

        Returns:
            The playing state after the toggle
        """
        if self.playing:
            self.pause()
        else:
            self.play()
        return self.playing

    def seek(self, time: float) -> float:
        """Move the playback position.

        Args:
            time: Target position in seconds, clamped to [0, duration]

        Returns:
            The position actually applied
        """
        upper = self.total_duration if self.total_duration > 0 else max(0.0, time)
        target = max(0.0, min(upper, time))
        self._ended = False

        if self.playing:
            try:
                pygame.mixer.music.play(start=target)
            except pygame.error as e:
                print(f"AudioPlayer: Seek to {target:.2f}s not supported for this file: {e}")
                return self.current_time
            self._seek_base = target
        else:
            self._seek_base = target
            self._restart_pending = True
        return target

    def update(self) -> Optional[str]:
        """Detect end of stream. Should be called once per frame by the main loop.

        Returns:
            "SONG_ENDED" if the song has finished, None otherwise.
        """
        if self.playing and not pygame.mixer.music.get_busy():
            self.playing = False
            self._ended = True
            self._started = False
            self._restart_pending = False
            self._seek_base = self.total_duration
            print("AudioPlayer: Song ended.")
            return SONG_ENDED
        return None

    def stop(self) -> None:
        """Stops playback and resets position."""
        if pygame.mixer.get_init():
            pygame.mixer.music.stop()
        self.playing = False
        self._seek_base = 0.0
        self._started = False
        self._restart_pending = False
        self._ended = False

    def quit_player(self) -> None:
        """Stops audio and unloads the music stream."""
        self.stop()
        if pygame.mixer.get_init():
            pygame.mixer.music.unload()
        print("AudioPlayer: Player resources released.")
