#!/usr/bin/env python3
"""Lyric MV Player - plays a song with time-synced lyrics over a background slideshow or video."""

import argparse
import os
import sys

# Set environment variable to hide pygame welcome message
os.environ["PYGAME_HIDE_SUPPORT_PROMPT"] = "1"

import pygame  # noqa: E402

from lyric_mv.errors import LyricsLoadError  # noqa: E402
from lyric_mv.layout import PresentationStyle  # noqa: E402
from lyric_mv.lyrics import load_lyrics_file  # noqa: E402
from lyric_mv.media import MediaProbe  # noqa: E402
from lyric_mv.player import AudioPlayer  # noqa: E402
from lyric_mv.session import PlaybackSession  # noqa: E402
from lyric_mv.utils import PlayerSettings  # noqa: E402
from lyric_mv.video import BackgroundVideo  # noqa: E402

DEFAULT_WINDOW_SIZE = (1280, 720)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Lyric MV Player - karaoke music video with synced lyrics")
    parser.add_argument("audio_file", help="Audio file to play")
    parser.add_argument("--lyrics", dest="lyrics_file", required=True, help="Timed lyrics (.json, .srt or .lrc)")
    parser.add_argument(
        "--image",
        dest="images",
        action="append",
        default=[],
        help="Background image; repeat for a slideshow",
    )
    parser.add_argument("--video", dest="video_file", help="Looping background video (takes precedence over images)")
    parser.add_argument("--title", default=None, help="Song title shown in the header")
    parser.add_argument("--artist", default="", help="Artist name shown in the header")
    parser.add_argument(
        "--style",
        default=PresentationStyle.LINEAR.value,
        choices=[style.value for style in PresentationStyle],
        help="Initial lyric style (default: linear)",
    )
    parser.add_argument("--width", type=int, default=DEFAULT_WINDOW_SIZE[0], help="Window width")
    parser.add_argument("--height", type=int, default=DEFAULT_WINDOW_SIZE[1], help="Window height")
    parser.add_argument("--env-file", dest="env_file", default=None, help="Path to a .env file with player settings")
    return parser


def main() -> int:
    """Run the player.

    Returns:
        int: Exit code (0 for success, 1 for failure)
    """
    args = build_parser().parse_args()
    settings = PlayerSettings.from_env(args.env_file)

    if not os.path.exists(args.audio_file):
        print(f"Error: Audio file not found: {args.audio_file}")
        return 1
    for image in args.images:
        if not os.path.exists(image):
            print(f"Error: Background image not found: {image}")
            return 1
    if args.video_file and not os.path.exists(args.video_file):
        print(f"Error: Background video not found: {args.video_file}")
        return 1

    probe = MediaProbe(settings.ffmpeg_path)
    duration = probe.duration(args.audio_file)

    try:
        sheet = load_lyrics_file(args.lyrics_file, duration)
    except LyricsLoadError as e:
        print(f"Error: {e}")
        return 1
    if not len(sheet):
        print(f"Warning: No usable lyric lines in {args.lyrics_file}")

    audio_path = probe.ensure_playable(args.audio_file)
    if not audio_path:
        print("Error: Could not prepare the audio file for playback")
        return 1

    # Imported late so a missing display only matters once everything else checks out
    from lyric_mv.gui.renderer import LyricRenderer
    from lyric_mv.gui.video_player import PygameFullscreenHost, VideoPlayerApp

    pygame.init()
    window_size = (args.width, args.height)
    pygame.display.set_mode(window_size)
    title = args.title or os.path.splitext(os.path.basename(args.audio_file))[0]
    pygame.display.set_caption(f"{title} - Lyric MV Player")

    audio = AudioPlayer()
    if not audio.load(audio_path, duration):
        print("Error: Could not load audio")
        pygame.quit()
        return 1

    video = None
    if args.video_file:
        video = BackgroundVideo(
            args.video_file,
            window_size,
            duration=probe.duration(args.video_file),
            fps=settings.fps,
            ffmpeg_path=settings.ffmpeg_path,
        )

    host = PygameFullscreenHost(window_size)
    session = PlaybackSession(
        sheet,
        audio,
        host,
        video=video,
        images=args.images,
        settings=settings,
        style=PresentationStyle(args.style),
    )
    app = VideoPlayerApp(session, LyricRenderer(title=title, artist=args.artist), host, fps=settings.fps)
    try:
        app.run()
    finally:
        pygame.quit()
    return 0


if __name__ == "__main__":
    sys.exit(main())
