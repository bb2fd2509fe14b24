#!/usr/bin/env python3
"""Paints session frames with pygame: background, lyrics in each style, and chrome."""

import math
import os
import random
import sys
from typing import Dict, List, Optional, Tuple

# Set environment variable to hide pygame welcome message
os.environ["PYGAME_HIDE_SUPPORT_PROMPT"] = "1"

import pygame  # noqa: E402

from lyric_mv.layout import (  # noqa: E402
    LinearLayout,
    LineState,
    TurntableLayout,
    VerticalLayout,
)
from lyric_mv.presentation import PresentationMode  # noqa: E402
from lyric_mv.session import Alignment, Frame, VisualEffect  # noqa: E402
from lyric_mv.turntable import split_highlight  # noqa: E402
from lyric_mv.utils import format_time  # noqa: E402

# Pixels per font-size unit; font sizes are kept in rem-like units
REM_PX = 16

PALETTES = [
    {"name": "Mist", "base": (230, 230, 230), "highlight": (166, 166, 166)},
    {"name": "Sunset", "base": (255, 237, 213), "highlight": (251, 146, 60)},
    {"name": "Ocean", "base": (224, 242, 254), "highlight": (56, 189, 248)},
    {"name": "Forest", "base": (220, 252, 231), "highlight": (74, 222, 128)},
    {"name": "Rose", "base": (255, 228, 230), "highlight": (251, 113, 133)},
]

EXPORT_INSTRUCTIONS = [
    "Recording mode (screen capture)",
    "The video will play fullscreen with every control hidden.",
    "1. Press Enter to go fullscreen.",
    "2. Start your system screen recorder (Win+G or Cmd+Shift+5).",
    "3. Press Space and let the video play through once.",
    "4. Stop the recording when playback ends.",
    "Enter: start    Esc: cancel",
]


class LyricRenderer:
    """Draws one Frame onto a pygame surface."""

    def __init__(self, title: str = "", artist: str = "") -> None:
        if not pygame.font.get_init():
            pygame.font.init()

        self.title = title
        self.artist = artist
        self.text_margin = 80  # Horizontal margin for text (40px on each side)
        self.max_text_width = 640
        self.default_font_name: Optional[str] = None
        self._fonts: Dict[Tuple[int, bool], pygame.font.Font] = {}
        self._images: Dict[str, Optional[pygame.Surface]] = {}
        self._scaled_background: Dict[Tuple[str, Tuple[int, int]], pygame.Surface] = {}
        self._rain = [(random.random(), random.random(), 10 + random.random() * 20) for _ in range(120)]

        # Rectangles the app uses for mouse hit-testing, refreshed on every render
        self.timeline_rect: Optional[pygame.Rect] = None
        self.play_button_rect: Optional[pygame.Rect] = None

        self._select_font_name()

    # ------------------------------------------------------------------
    # Fonts and text wrapping
    # ------------------------------------------------------------------

    def _select_font_name(self) -> None:
        """Pick a system font that can render CJK lyrics."""
        if sys.platform == "darwin":
            fonts_to_try = ["Hiragino Sans GB", "PingFang SC", "STHeiti", "AppleGothic"]
        elif sys.platform == "win32":
            fonts_to_try = ["Microsoft JhengHei", "Microsoft YaHei", "Yu Gothic UI", "Meiryo"]
        else:
            fonts_to_try = ["Noto Sans CJK TC", "Noto Sans CJK SC", "WenQuanYi Zen Hei", "Noto Sans CJK JP"]

        available = set(pygame.font.get_fonts())
        for font_name in fonts_to_try:
            if font_name.lower().replace(" ", "") in available:
                self.default_font_name = font_name
                break
        print(f"LyricRenderer: Using font: {self.default_font_name or 'pygame default'}")

    def font(self, size_px: int, bold: bool = False) -> pygame.font.Font:
        size_px = max(8, int(size_px))
        key = (size_px, bold)
        if key not in self._fonts:
            if self.default_font_name:
                self._fonts[key] = pygame.font.SysFont(self.default_font_name, size_px, bold=bold)
            else:
                font = pygame.font.Font(None, size_px)
                font.set_bold(bold)
                self._fonts[key] = font
        return self._fonts[key]

    def wrap_text(self, text: str, font: pygame.font.Font) -> List[str]:
        """Wrap text to fit within the maximum text width.

        Handles both space-separated languages (like English) and character-based
        languages (like Chinese). Also handles very long words by breaking them.
        """
        is_cjk_dominant = sum(1 for c in text if _is_cjk(c)) > len(text) * 0.4
        if is_cjk_dominant:
            return self._wrap_cjk_text(text, font)

        lines = []
        current_line = ""
        for word in text.split():
            test_line = current_line + " " + word if current_line else word

            if font.size(word)[0] >= self.max_text_width:  # Word itself is too long
                if current_line:
                    lines.append(current_line)
                lines.extend(self._break_long_word(word, font))
                current_line = ""
                continue

            if font.size(test_line)[0] < self.max_text_width:
                current_line = test_line
            else:
                lines.append(current_line)
                current_line = word

        if current_line:
            lines.append(current_line)
        return lines

    def _wrap_cjk_text(self, text: str, font: pygame.font.Font) -> List[str]:
        lines = []
        current_line = ""
        for char in text:
            test_line = current_line + char
            if font.size(test_line)[0] < self.max_text_width:
                current_line = test_line
            else:
                if current_line:
                    lines.append(current_line)
                current_line = char
        if current_line:
            lines.append(current_line)
        return lines

    def _break_long_word(self, word: str, font: pygame.font.Font) -> List[str]:
        lines = []
        current_line = ""
        for char in word:
            test_line = current_line + char
            if font.size(test_line)[0] < self.max_text_width:
                current_line = test_line
            else:
                if current_line:
                    lines.append(current_line)
                current_line = char
                # A single character wider than the limit goes on its own line
                if font.size(current_line)[0] >= self.max_text_width:
                    lines.append(current_line)
                    current_line = ""
        if current_line:
            lines.append(current_line)
        return lines

    # ------------------------------------------------------------------
    # Frame
    # ------------------------------------------------------------------

    def render(self, surface: pygame.Surface, frame: Frame, video_frame: Optional[pygame.Surface] = None) -> None:
        width, height = surface.get_size()
        self.max_text_width = max(100, min(width - self.text_margin, 896))
        palette = PALETTES[frame.palette_index % len(PALETTES)]
        ticks = pygame.time.get_ticks() / 1000.0

        self._draw_background(surface, frame, video_frame, ticks)

        show_chrome = frame.chrome_visible and frame.controls_visible
        header_h = 70 if show_chrome else 0
        footer_h = 110 if show_chrome else 0
        lyric_rect = pygame.Rect(0, header_h, width, height - header_h - footer_h)

        if frame.geometry.has_lyrics:
            layout = frame.geometry.layout
            if isinstance(layout, TurntableLayout):
                self._draw_turntable(surface, lyric_rect, layout, frame, palette)
            elif isinstance(layout, VerticalLayout):
                self._draw_vertical(surface, lyric_rect, layout, frame, palette)
            elif isinstance(layout, LinearLayout):
                self._draw_linear(surface, lyric_rect, layout, frame, palette)

        self.timeline_rect = None
        self.play_button_rect = None
        if show_chrome:
            self._draw_header(surface)
            self._draw_footer(surface, frame)
        if frame.mode is PresentationMode.PRESENTING and frame.play_button_visible:
            self._draw_play_button(surface, frame.snapshot.is_playing)
        if frame.export_prompt_visible:
            self._draw_export_prompt(surface)
        if frame.status_message:
            self._draw_status(surface, frame.status_message)

    # ------------------------------------------------------------------
    # Background
    # ------------------------------------------------------------------

    def _load_image(self, path: str) -> Optional[pygame.Surface]:
        if path not in self._images:
            try:
                self._images[path] = pygame.image.load(path).convert()
            except (pygame.error, FileNotFoundError) as e:
                print(f"LyricRenderer: Error loading background image {path}: {e}")
                self._images[path] = None
        return self._images[path]

    def _cover(self, image: pygame.Surface, size: Tuple[int, int], zoom: float = 1.0) -> pygame.Surface:
        scale = max(size[0] / image.get_width(), size[1] / image.get_height()) * zoom
        new_size = (max(1, int(image.get_width() * scale)), max(1, int(image.get_height() * scale)))
        return pygame.transform.smoothscale(image, new_size)

    def _draw_background(
        self, surface: pygame.Surface, frame: Frame, video_frame: Optional[pygame.Surface], ticks: float
    ) -> None:
        surface.fill((0, 0, 0))
        size = surface.get_size()
        effect = frame.effect

        image = video_frame
        if image is None and not frame.background.has_video and frame.background.image_path:
            image = self._load_image(frame.background.image_path)

        if image is not None:
            pan = 0.0
            if effect is VisualEffect.SUBTLE_PAN and video_frame is None:
                # Slow 20 second back-and-forth, as a gentle Ken Burns
                pan = math.sin(ticks * 2 * math.pi / 20.0)
                key = (frame.background.image_path or "", size)
                if key not in self._scaled_background:
                    self._scaled_background[key] = self._cover(image, size, zoom=1.05)
                scaled = self._scaled_background[key]
            else:
                scaled = self._cover(image, size) if video_frame is not None else self._cached_cover(frame, image, size)

            if effect is VisualEffect.BLUR:
                small = pygame.transform.smoothscale(scaled, (max(1, scaled.get_width() // 12), max(1, scaled.get_height() // 12)))
                scaled = pygame.transform.smoothscale(small, scaled.get_size())

            x = (size[0] - scaled.get_width()) // 2 + int(pan * (scaled.get_width() - size[0]) / 2)
            y = (size[1] - scaled.get_height()) // 2
            surface.blit(scaled, (x, y))

        overlay = pygame.Surface(size, pygame.SRCALPHA)
        overlay.fill((0, 0, 0, 128))
        surface.blit(overlay, (0, 0))

        if effect is VisualEffect.RAIN:
            for x_frac, phase, length in self._rain:
                x = int(x_frac * size[0])
                y = int(((phase + ticks * 2.0) % 1.0) * (size[1] + length)) - int(length)
                pygame.draw.line(surface, (200, 200, 200), (x, y), (x, y + int(length)), 1)
        elif effect is VisualEffect.GRAIN:
            for _ in range(size[0] * size[1] // 400):
                shade = random.randint(60, 140)
                surface.set_at((random.randrange(size[0]), random.randrange(size[1])), (shade, shade, shade))

    def _cached_cover(self, frame: Frame, image: pygame.Surface, size: Tuple[int, int]) -> pygame.Surface:
        key = ("cover:" + (frame.background.image_path or ""), size)
        if key not in self._scaled_background:
            self._scaled_background[key] = self._cover(image, size)
        return self._scaled_background[key]

    # ------------------------------------------------------------------
    # Lyric styles
    # ------------------------------------------------------------------

    def _anchor_x(self, rect: pygame.Rect, alignment: Alignment, line_width: int) -> int:
        content_width = min(rect.width - self.text_margin, 896)
        left = rect.centerx - content_width // 2
        if alignment is Alignment.LEFT:
            return left
        if alignment is Alignment.RIGHT:
            return left + content_width - line_width
        return rect.centerx - line_width // 2

    def _blit_text(
        self,
        surface: pygame.Surface,
        text: str,
        font: pygame.font.Font,
        color: Tuple[int, int, int],
        opacity: float,
        pos: Tuple[int, int],
    ) -> None:
        text_surface = font.render(text, True, color)
        if opacity < 1.0:
            text_surface.set_alpha(int(255 * opacity))
        surface.blit(text_surface, pos)

    def _draw_linear(
        self, surface: pygame.Surface, rect: pygame.Rect, layout: LinearLayout, frame: Frame, palette: dict
    ) -> None:
        base_px = frame.font_size * REM_PX
        blocks = []
        for line in layout.lines:
            font = self.font(base_px * line.scale, bold=line.is_active)
            wrapped = self.wrap_text(line.text, font)
            blocks.append((line, font, wrapped))

        gap = int(base_px * 0.3)
        total_height = sum(len(wrapped) * font.get_linesize() for _, font, wrapped in blocks)
        total_height += gap * max(0, len(blocks) - 1)
        y = rect.centery - total_height // 2

        for line, font, wrapped in blocks:
            color = palette["highlight"] if line.state is LineState.PAST else palette["base"]
            for text in wrapped:
                line_width = font.size(text)[0]
                x = self._anchor_x(rect, frame.alignment, line_width)
                if line.is_active:
                    self._draw_karaoke_line(surface, text, font, (x, y), frame.active_progress, palette)
                else:
                    self._blit_text(surface, text, font, color, line.opacity, (x, y))
                y += font.get_linesize()
            y += gap

    def _draw_karaoke_line(
        self,
        surface: pygame.Surface,
        text: str,
        font: pygame.font.Font,
        pos: Tuple[int, int],
        progress: float,
        palette: dict,
    ) -> None:
        """Active line: highlight colour sweeps left to right as the line is sung."""
        base = font.render(text, True, palette["base"])
        sung = font.render(text, True, palette["highlight"])
        surface.blit(base, pos)
        sung_width = int(sung.get_width() * progress)
        if sung_width > 0:
            surface.blit(sung, pos, pygame.Rect(0, 0, sung_width, sung.get_height()))

    def _draw_vertical(
        self, surface: pygame.Surface, rect: pygame.Rect, layout: VerticalLayout, frame: Frame, palette: dict
    ) -> None:
        base_px = frame.font_size * REM_PX
        line_height_px = frame.font_size * 1.2 * REM_PX
        offset_px = layout.display_offset * REM_PX

        previous_clip = surface.get_clip()
        surface.set_clip(rect)
        for line in layout.lines:
            y = rect.centery + int(line.index * line_height_px + offset_px - line_height_px / 2)
            if y + line_height_px < rect.top or y > rect.bottom:
                continue
            font = self.font(base_px * line.scale, bold=line.is_active)
            color = palette["highlight"] if line.is_active else palette["base"]
            text = line.text
            line_width = font.size(text)[0]
            x = self._anchor_x(rect, frame.alignment, line_width)
            self._blit_text(surface, text, font, color, line.opacity, (x, y))
        surface.set_clip(previous_clip)

    def _draw_turntable(
        self, surface: pygame.Surface, rect: pygame.Rect, layout: TurntableLayout, frame: Frame, palette: dict
    ) -> None:
        cx, cy = rect.center
        radius = int(min(rect.width, rect.height) * 0.4)

        # Disc
        pygame.draw.circle(surface, (60, 60, 60), (cx, cy), int(radius * 0.9), 1)
        pygame.draw.circle(surface, (30, 30, 30), (cx, cy), int(radius * 0.88), 2)
        pygame.draw.circle(surface, (20, 20, 20), (cx, cy), int(radius * 0.4))
        pygame.draw.circle(surface, (70, 70, 70), (cx, cy), int(radius * 0.4), 1)

        model = layout.model
        text = model.full_text
        if text:
            _, active_text, _ = split_highlight(model, layout.active_index)
            active_span = model.spans[layout.active_index] if active_text else None
            circumference = 2 * math.pi * radius
            size_px = max(10, min(int(1.2 * REM_PX), int(circumference / max(1, len(text)) * 1.6)))
            font = self.font(size_px)
            bold_font = self.font(size_px, bold=True)

            for i, char in enumerate(text):
                if char.isspace():
                    continue
                # 0 degrees is the top of the ring, angles grow clockwise
                angle = (i + 0.5) / len(text) * 360.0 + layout.display_angle
                radians = math.radians(angle)
                x = cx + radius * math.sin(radians)
                y = cy - radius * math.cos(radians)
                highlighted = active_span is not None and active_span.start <= i < active_span.end
                glyph = (bold_font if highlighted else font).render(
                    char, True, palette["highlight"] if highlighted else palette["base"]
                )
                glyph = pygame.transform.rotate(glyph, -angle)
                surface.blit(glyph, glyph.get_rect(center=(int(x), int(y))))

        # Read head at the top of the ring
        top = cy - radius
        pygame.draw.polygon(
            surface, palette["highlight"], [(cx - 8, top - 22), (cx, top - 8), (cx + 8, top - 22)]
        )

    # ------------------------------------------------------------------
    # Chrome
    # ------------------------------------------------------------------

    def _draw_header(self, surface: pygame.Surface) -> None:
        width = surface.get_width()
        title_surface = self.font(28, bold=True).render(self.title, True, (255, 255, 255))
        artist_surface = self.font(18).render(self.artist, True, (200, 200, 200))
        surface.blit(title_surface, (width - title_surface.get_width() - 30, 16))
        surface.blit(artist_surface, (width - artist_surface.get_width() - 30, 16 + title_surface.get_height()))
        hint = self.font(16).render("X: export MV", True, (180, 200, 255))
        surface.blit(hint, (30, 24))

    def _draw_footer(self, surface: pygame.Surface, frame: Frame) -> None:
        width, height = surface.get_size()
        snapshot = frame.snapshot
        small = self.font(16)

        bar_y = height - 95
        self.timeline_rect = pygame.Rect(90, bar_y, width - 180, 8)
        pygame.draw.rect(surface, (80, 80, 80), self.timeline_rect, border_radius=4)
        if snapshot.duration > 0:
            filled = self.timeline_rect.copy()
            filled.width = int(self.timeline_rect.width * min(1.0, snapshot.time / snapshot.duration))
            pygame.draw.rect(surface, (255, 255, 255), filled, border_radius=4)

        current = small.render(format_time(snapshot.time), True, (210, 210, 210))
        total = small.render(format_time(snapshot.duration), True, (210, 210, 210))
        surface.blit(current, (90 - current.get_width() - 12, bar_y - 5))
        surface.blit(total, (self.timeline_rect.right + 12, bar_y - 5))

        self.play_button_rect = pygame.Rect(0, 0, 48, 48)
        self.play_button_rect.center = (width // 2, height - 45)
        pygame.draw.circle(surface, (255, 255, 255), self.play_button_rect.center, 24)
        self._draw_play_glyph(surface, self.play_button_rect.center, 10, snapshot.is_playing, (0, 0, 0))

        left = "Style: {}   Color: {}   Font: {:.2f}".format(
            frame.geometry.style.value, PALETTES[frame.palette_index % len(PALETTES)]["name"], frame.font_size
        )
        right = "Align: {}   Effect: {}".format(frame.alignment.value, frame.effect.value)
        surface.blit(small.render(left, True, (200, 200, 200)), (30, height - 55))
        right_surface = small.render(right, True, (200, 200, 200))
        surface.blit(right_surface, (width - right_surface.get_width() - 30, height - 55))

    def _draw_play_glyph(
        self, surface: pygame.Surface, center: Tuple[int, int], size: int, is_playing: bool, color: Tuple[int, int, int]
    ) -> None:
        cx, cy = center
        if is_playing:
            pygame.draw.rect(surface, color, (cx - size, cy - size, size * 2 // 3, size * 2))
            pygame.draw.rect(surface, color, (cx + size // 3, cy - size, size * 2 // 3, size * 2))
        else:
            pygame.draw.polygon(surface, color, [(cx - size // 2, cy - size), (cx - size // 2, cy + size), (cx + size, cy)])

    def _draw_play_button(self, surface: pygame.Surface, is_playing: bool) -> None:
        center = (surface.get_width() // 2, surface.get_height() // 2)
        button = pygame.Surface((120, 120), pygame.SRCALPHA)
        pygame.draw.circle(button, (0, 0, 0, 128), (60, 60), 60)
        surface.blit(button, (center[0] - 60, center[1] - 60))
        self.play_button_rect = pygame.Rect(center[0] - 60, center[1] - 60, 120, 120)
        self._draw_play_glyph(surface, center, 22, is_playing, (255, 255, 255))

    def _draw_export_prompt(self, surface: pygame.Surface) -> None:
        width, height = surface.get_size()
        shade = pygame.Surface((width, height), pygame.SRCALPHA)
        shade.fill((17, 24, 39, 230))
        surface.blit(shade, (0, 0))

        y = height // 2 - len(EXPORT_INSTRUCTIONS) * 18
        for i, line in enumerate(EXPORT_INSTRUCTIONS):
            font = self.font(26, bold=True) if i == 0 else self.font(18)
            text_surface = font.render(line, True, (255, 255, 255) if i == 0 else (210, 210, 210))
            surface.blit(text_surface, (width // 2 - text_surface.get_width() // 2, y))
            y += text_surface.get_height() + 12

    def _draw_status(self, surface: pygame.Surface, message: str) -> None:
        text_surface = self.font(18).render(message, True, (255, 120, 120))
        box = text_surface.get_rect(center=(surface.get_width() // 2, 30))
        pygame.draw.rect(surface, (0, 0, 0), box.inflate(20, 10), border_radius=6)
        surface.blit(text_surface, box)


def _is_cjk(char: str) -> bool:
    code = ord(char)
    return 0x3000 <= code <= 0x9FFF or 0xAC00 <= code <= 0xD7AF
