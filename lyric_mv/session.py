#!/usr/bin/env python3
"""Playback session: one clock snapshot per tick feeding lyrics, layout and video sync."""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence

from lyric_mv.errors import FullscreenError, PlaybackCommandError
from lyric_mv.layout import FrameGeometry, PresentationStyle, RenderModeCoordinator
from lyric_mv.lyrics import LyricSheet
from lyric_mv.player import SONG_ENDED, AudioPlayer, ClockSnapshot
from lyric_mv.presentation import FullscreenHost, PresentationController, PresentationMode
from lyric_mv.utils import PlayerSettings, clamp
from lyric_mv.video import BackgroundVideo
from lyric_mv.video_sync import SecondaryStreamSync

# Line height of the vertical style, relative to the font size
LINE_HEIGHT_FACTOR = 1.2
STATUS_MESSAGE_SECONDS = 4.0


class Alignment(Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class VisualEffect(Enum):
    NONE = "none"
    SUBTLE_PAN = "subtle-pan"
    RAIN = "rain"
    BLUR = "blur"
    GRAIN = "grain"


@dataclass(frozen=True)
class Background:
    image_path: Optional[str]
    image_index: int
    has_video: bool


@dataclass(frozen=True)
class Frame:
    """Everything the presentation layer needs to paint one frame."""

    snapshot: ClockSnapshot
    active_index: int
    active_progress: float
    geometry: FrameGeometry
    background: Background
    mode: PresentationMode
    controls_visible: bool
    chrome_visible: bool
    play_button_visible: bool
    export_prompt_visible: bool
    alignment: Alignment
    effect: VisualEffect
    font_size: float
    palette_index: int
    status_message: Optional[str]


class PlaybackSession:
    """Owns the lyric sheet, the playback clock and every component derived from them."""

    def __init__(
        self,
        sheet: LyricSheet,
        audio: AudioPlayer,
        host: FullscreenHost,
        video: Optional[BackgroundVideo] = None,
        images: Sequence[str] = (),
        settings: Optional[PlayerSettings] = None,
        style: PresentationStyle = PresentationStyle.LINEAR,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings or PlayerSettings()
        self.clock = clock
        self.sheet = sheet
        self.audio = audio
        self.video = video
        self.images = list(images)

        self.font_size = clamp(self.settings.font_size, self.settings.font_min, self.settings.font_max)
        self.alignment = Alignment.CENTER
        self.effect = VisualEffect.SUBTLE_PAN
        self.palette_index = 0

        self.coordinator = RenderModeCoordinator(
            sheet.lyrics, line_height=self.font_size * LINE_HEIGHT_FACTOR, style=style, clock=clock
        )
        self.presentation = PresentationController(host, self.settings.idle_timeout, clock)
        self.video_sync = SecondaryStreamSync(video, self.settings.drift_tolerance) if video else None

        self.image_index = 0
        self._slideshow_elapsed = 0.0
        self._last_tick: Optional[float] = None

        self.status_message: Optional[str] = None
        self._status_until = 0.0

    # ------------------------------------------------------------------
    # Per-tick recomputation
    # ------------------------------------------------------------------

    def tick(self) -> Frame:
        """Advance every derived component from one snapshot of the audio clock.

        Returns:
            The Frame to paint for this tick
        """
        if self.audio.update() == SONG_ENDED:
            print("PlaybackSession: End of stream.")

        snapshot = self.audio.snapshot()
        if snapshot.is_playing != self.presentation.is_playing:
            self.presentation.on_playing_changed(snapshot.is_playing)

        active_index = self.sheet.active_index(snapshot.time)
        geometry = self.coordinator.recompute(active_index)

        if self.video_sync:
            result = self.video_sync.sync(snapshot.time, snapshot.is_playing)
            if result.error:
                self.show_status(f"Background video cannot play: {result.error}")

        self._advance_slideshow(snapshot)
        self.presentation.tick()

        now = self.clock()
        if self.status_message and now >= self._status_until:
            self.status_message = None

        return Frame(
            snapshot=snapshot,
            active_index=geometry.active_index,
            active_progress=self.active_progress(geometry.active_index, snapshot.time),
            geometry=geometry,
            background=self.background,
            mode=self.presentation.mode,
            controls_visible=self.presentation.controls_visible,
            chrome_visible=self.presentation.chrome_visible,
            play_button_visible=self.presentation.play_button_visible,
            export_prompt_visible=self.presentation.export_prompt_visible,
            alignment=self.alignment,
            effect=self.effect,
            font_size=self.font_size,
            palette_index=self.palette_index,
            status_message=self.status_message,
        )

    def active_progress(self, active_index: int, time_seconds: float) -> float:
        """Fraction of the active line already sung, 0.0 when no line is active."""
        if not 0 <= active_index < len(self.sheet):
            return 0.0
        lyric = self.sheet[active_index]
        return clamp((time_seconds - lyric.start_time) / (lyric.end_time - lyric.start_time), 0.0, 1.0)

    @property
    def background(self) -> Background:
        image_path = self.images[self.image_index] if self.images else None
        return Background(image_path=image_path, image_index=self.image_index, has_video=self.video is not None)

    def _advance_slideshow(self, snapshot: ClockSnapshot) -> None:
        now = self.clock()
        last, self._last_tick = self._last_tick, now
        if self.video is not None or len(self.images) <= 1 or not snapshot.is_playing or last is None:
            return
        self._slideshow_elapsed += now - last
        while self._slideshow_elapsed >= self.settings.slideshow_interval:
            self._slideshow_elapsed -= self.settings.slideshow_interval
            self.image_index = (self.image_index + 1) % len(self.images)

    def show_status(self, message: str) -> None:
        print(f"PlaybackSession: {message}")
        self.status_message = message
        self._status_until = self.clock() + STATUS_MESSAGE_SECONDS

    # ------------------------------------------------------------------
    # User input
    # ------------------------------------------------------------------

    def toggle_play(self) -> bool:
        """Play or pause the audio.

        A refused play leaves the session paused with a status message; the
        background video gets one more chance to start with it.

        Returns:
            Whether the session is playing afterwards
        """
        if self.audio.is_playing:
            self.audio.pause()
        else:
            if self.video_sync:
                self.video_sync.retry_play()
            try:
                self.audio.play()
            except PlaybackCommandError as e:
                self.show_status(f"Cannot play: {e}")
        self.presentation.on_playing_changed(self.audio.is_playing)
        return self.audio.is_playing

    def seek(self, time_seconds: float) -> float:
        duration = self.audio.total_duration
        target = clamp(time_seconds, 0.0, duration) if duration > 0 else max(0.0, time_seconds)
        return self.audio.seek(target)

    def select_style(self, style: PresentationStyle) -> None:
        self.coordinator.select_style(style)

    def select_alignment(self, alignment: Alignment) -> None:
        self.alignment = alignment

    def toggle_effect(self, effect: VisualEffect) -> None:
        """Choose an effect; choosing the current one turns effects off."""
        self.effect = VisualEffect.NONE if self.effect is effect else effect

    def adjust_font_size(self, steps: int) -> float:
        """Grow or shrink the lyric font by ``steps`` increments, within the configured range."""
        self.font_size = clamp(
            self.font_size + steps * self.settings.font_step, self.settings.font_min, self.settings.font_max
        )
        self.coordinator.set_line_height(self.font_size * LINE_HEIGHT_FACTOR)
        return self.font_size

    def cycle_palette(self, palette_count: int) -> int:
        if palette_count > 0:
            self.palette_index = (self.palette_index + 1) % palette_count
        return self.palette_index

    def toggle_controls(self) -> None:
        self.presentation.toggle_controls()

    def pointer_moved(self) -> None:
        self.presentation.on_pointer_moved()

    def begin_export(self) -> None:
        self.presentation.begin_export()

    def cancel_export(self) -> None:
        self.presentation.cancel_export()

    def enter_presentation(self) -> bool:
        """Enter fullscreen presentation.

        Returns:
            True if presentation mode is active afterwards
        """
        try:
            self.presentation.request_presentation()
        except FullscreenError as e:
            self.show_status(f"Cannot enter fullscreen: {e}")
            return False
        return True

    def exit_presentation(self) -> None:
        self.presentation.exit_presentation()

    def fullscreen_changed(self, is_fullscreen: bool) -> None:
        self.presentation.on_fullscreen_changed(is_fullscreen)

    def replace_lyrics(self, sheet: LyricSheet) -> None:
        """Swap the lyric sheet; derived state is rebuilt on the next tick."""
        self.sheet = sheet
        self.coordinator.replace_lyrics(sheet.lyrics)

    def close(self) -> None:
        self.presentation.idle_timer.cancel()
        if self.video is not None:
            self.video.close()
        self.audio.quit_player()
