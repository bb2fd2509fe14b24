#!/usr/bin/env python3
"""Exceptions raised by the lyric MV player."""


class LyricMVError(Exception):
    """Base class for player errors."""


class LyricsLoadError(LyricMVError):
    """A lyric file could not be read or parsed."""


class PlaybackCommandError(LyricMVError):
    """A play command was rejected by the audio or video backend."""


class FullscreenError(LyricMVError):
    """The display refused to switch to fullscreen."""
