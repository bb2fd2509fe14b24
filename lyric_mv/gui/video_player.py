#!/usr/bin/env python3
"""Pygame window and event loop for the lyric MV player."""

import os
from typing import Optional, Tuple

# Set environment variable to hide pygame welcome message
os.environ["PYGAME_HIDE_SUPPORT_PROMPT"] = "1"

import pygame  # noqa: E402

from lyric_mv.errors import FullscreenError  # noqa: E402
from lyric_mv.gui.renderer import PALETTES, LyricRenderer  # noqa: E402
from lyric_mv.layout import PresentationStyle  # noqa: E402
from lyric_mv.session import Alignment, PlaybackSession, VisualEffect  # noqa: E402

SEEK_STEP_SECONDS = 5.0

STYLE_KEYS = {
    pygame.K_1: PresentationStyle.LINEAR,
    pygame.K_2: PresentationStyle.VERTICAL,
    pygame.K_3: PresentationStyle.TURNTABLE,
}
ALIGNMENT_KEYS = {
    pygame.K_a: Alignment.LEFT,
    pygame.K_c: Alignment.CENTER,
    pygame.K_r: Alignment.RIGHT,
}
EFFECT_KEYS = {
    pygame.K_p: VisualEffect.SUBTLE_PAN,
    pygame.K_n: VisualEffect.RAIN,
    pygame.K_b: VisualEffect.BLUR,
    pygame.K_g: VisualEffect.GRAIN,
}


class PygameFullscreenHost:
    """Fullscreen switching for the pygame display window."""

    def __init__(self, window_size: Tuple[int, int]) -> None:
        self.window_size = window_size

    def is_fullscreen(self) -> bool:
        surface = pygame.display.get_surface()
        return bool(surface is not None and surface.get_flags() & pygame.FULLSCREEN)

    def request_fullscreen(self) -> None:
        try:
            pygame.display.set_mode((0, 0), pygame.FULLSCREEN)
        except pygame.error as e:
            # Recover the window the failed switch may have torn down
            pygame.display.set_mode(self.window_size)
            raise FullscreenError(str(e)) from e
        if not self.is_fullscreen():
            raise FullscreenError("display did not switch to fullscreen")

    def exit_fullscreen(self) -> None:
        if self.is_fullscreen():
            pygame.display.set_mode(self.window_size)


class VideoPlayerApp:
    """Runs the session: reads input, ticks the session once per frame and paints it."""

    def __init__(
        self,
        session: PlaybackSession,
        renderer: LyricRenderer,
        host: PygameFullscreenHost,
        fps: int = 30,
    ) -> None:
        self.session = session
        self.renderer = renderer
        self.host = host
        self.fps = fps
        self.running = True
        self._was_fullscreen = host.is_fullscreen()

    def _handle_key(self, event: pygame.event.Event) -> None:
        session = self.session
        presentation = session.presentation

        if presentation.export_prompt_visible:
            if event.key == pygame.K_RETURN:
                session.enter_presentation()
            elif event.key == pygame.K_ESCAPE:
                session.cancel_export()
            return

        if event.key == pygame.K_SPACE:
            session.toggle_play()
        elif event.key == pygame.K_ESCAPE:
            if presentation.presenting:
                session.exit_presentation()
            else:
                self.running = False
        elif presentation.presenting:
            # Only play/pause and leaving are available while presenting
            return
        elif event.key == pygame.K_LEFT:
            session.seek(session.audio.current_time - SEEK_STEP_SECONDS)
        elif event.key == pygame.K_RIGHT:
            session.seek(session.audio.current_time + SEEK_STEP_SECONDS)
        elif event.key in STYLE_KEYS:
            session.select_style(STYLE_KEYS[event.key])
        elif event.key in ALIGNMENT_KEYS:
            session.select_alignment(ALIGNMENT_KEYS[event.key])
        elif event.key in EFFECT_KEYS:
            session.toggle_effect(EFFECT_KEYS[event.key])
        elif event.key in (pygame.K_EQUALS, pygame.K_PLUS, pygame.K_KP_PLUS):
            session.adjust_font_size(1)
        elif event.key in (pygame.K_MINUS, pygame.K_KP_MINUS):
            session.adjust_font_size(-1)
        elif event.key == pygame.K_k:
            session.cycle_palette(len(PALETTES))
        elif event.key == pygame.K_h:
            session.toggle_controls()
        elif event.key == pygame.K_x:
            session.begin_export()

    def _handle_click(self, pos: Tuple[int, int]) -> None:
        if self.session.presentation.export_prompt_visible:
            return
        play_rect = self.renderer.play_button_rect
        if play_rect and play_rect.collidepoint(pos):
            self.session.toggle_play()
            return
        timeline = self.renderer.timeline_rect
        if timeline and timeline.inflate(0, 16).collidepoint(pos) and timeline.width > 0:
            fraction = (pos[0] - timeline.left) / timeline.width
            self.session.seek(fraction * self.session.audio.total_duration)

    def _handle_event(self, event: pygame.event.Event) -> None:
        """Handles a single Pygame event."""
        if event.type == pygame.QUIT:
            self.running = False
        elif event.type == pygame.KEYDOWN:
            self._handle_key(event)
        elif event.type == pygame.MOUSEMOTION:
            self.session.pointer_moved()
        elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            self._handle_click(event.pos)

    def _observe_fullscreen(self) -> None:
        """Report fullscreen changes made outside the app (window manager, OS keys)."""
        is_fullscreen = self.host.is_fullscreen()
        if is_fullscreen != self._was_fullscreen:
            self._was_fullscreen = is_fullscreen
            self.session.fullscreen_changed(is_fullscreen)

    def run(self) -> None:
        """Main loop for the application."""
        clock = pygame.time.Clock()
        video = self.session.video
        while self.running:
            for event in pygame.event.get():
                self._handle_event(event)
            self._observe_fullscreen()

            frame = self.session.tick()
            video_frame: Optional[pygame.Surface] = video.read_frame() if video is not None else None

            self.renderer.render(pygame.display.get_surface(), frame, video_frame)
            pygame.display.flip()
            clock.tick(self.fps)

        self.session.close()
