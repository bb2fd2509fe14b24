#!/usr/bin/env python3
"""Timed lyric model, lyric file loaders and the active-lyric resolver."""

import json
import math
import os
import re
import sys
from bisect import bisect_right
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

# Use typing_extensions for Self if Python < 3.11
if sys.version_info < (3, 11):
    from typing_extensions import Self
else:
    from typing import Self

from lyric_mv.errors import LyricsLoadError

# Length given to the last line of an LRC file when the song duration is unknown
DEFAULT_LAST_LINE_SECONDS = 5.0

LRC_TAG_PATTERN = re.compile(r"\[(\d+):(\d+(?:[.:]\d+)?)\]")


@dataclass(frozen=True)
class TimedLyric:
    """One lyric line and the half-open interval [start_time, end_time) it is sung in."""

    text: str
    start_time: float
    end_time: float

    def contains(self, time: float) -> bool:
        return self.start_time <= time < self.end_time


def resolve_active_index(
    lyrics: Sequence[TimedLyric], time: float, starts: Optional[Sequence[float]] = None
) -> int:
    """Find the lyric whose interval contains the given playback time.

    Args:
        lyrics: Lyrics sorted by start time, non-overlapping
        time: Playback time in seconds
        starts: Optional precomputed list of start times matching ``lyrics``

    Returns:
        Index of the active lyric, or -1 when the time falls before the first
        line, in a gap, past the last line, or the sequence is empty
    """
    if not lyrics or time is None or math.isnan(time):
        return -1

    if starts is None:
        starts = [lyric.start_time for lyric in lyrics]

    # Last line starting at or before `time`; it is active only if it has not ended yet
    index = bisect_right(starts, time) - 1
    if index >= 0 and time < lyrics[index].end_time:
        return index
    return -1


def normalize_lyrics(entries: Iterable[TimedLyric]) -> Tuple[TimedLyric, ...]:
    """Sort lyrics, drop unusable entries and clip overlapping intervals.

    Args:
        entries: Raw lyric entries in any order

    Returns:
        Tuple of lyrics sorted by start time with no overlaps
    """
    kept: List[TimedLyric] = []
    for entry in entries:
        text = entry.text.strip()
        if not text:
            continue
        if not entry.start_time < entry.end_time:
            print(f"LyricSheet: Dropping '{text}' with empty interval {entry.start_time}-{entry.end_time}")
            continue
        kept.append(TimedLyric(text, float(entry.start_time), float(entry.end_time)))

    kept.sort(key=lambda lyric: lyric.start_time)

    result: List[TimedLyric] = []
    for i, lyric in enumerate(kept):
        if i + 1 < len(kept) and lyric.end_time > kept[i + 1].start_time:
            clipped_end = kept[i + 1].start_time
            if clipped_end <= lyric.start_time:
                # Two lines start together, keep the later one only
                print(f"LyricSheet: Dropping '{lyric.text}', it starts with the next line")
                continue
            lyric = TimedLyric(lyric.text, lyric.start_time, clipped_end)
        result.append(lyric)
    return tuple(result)


class LyricSheet:
    """Immutable, validated sequence of timed lyrics for one playback session."""

    def __init__(self, lyrics: Iterable[TimedLyric] = ()) -> None:
        self.lyrics: Tuple[TimedLyric, ...] = normalize_lyrics(lyrics)
        self._starts: List[float] = [lyric.start_time for lyric in self.lyrics]

    def __len__(self) -> int:
        return len(self.lyrics)

    def __iter__(self) -> Iterator[TimedLyric]:
        return iter(self.lyrics)

    def __getitem__(self, index: int) -> TimedLyric:
        return self.lyrics[index]

    def __repr__(self) -> str:
        return f"LyricSheet({len(self.lyrics)} lines)"

    def active_index(self, time: float) -> int:
        """Index of the lyric active at ``time``, or -1."""
        return resolve_active_index(self.lyrics, time, self._starts)

    @property
    def texts(self) -> List[str]:
        return [lyric.text for lyric in self.lyrics]

    @classmethod
    def from_segments(cls, segments: Iterable[Dict[str, Any]]) -> Self:
        """Build a sheet from segment dictionaries.

        Accepts both the ``start``/``end``/``text`` layout written by
        transcription tools and the ``startTime``/``endTime``/``text`` layout.

        Args:
            segments: Iterable of segment dictionaries

        Returns:
            A new LyricSheet

        Raises:
            LyricsLoadError: If a segment misses its timing or text
        """
        entries = []
        for position, segment in enumerate(segments):
            try:
                start = segment["start"] if "start" in segment else segment["startTime"]
                end = segment["end"] if "end" in segment else segment["endTime"]
                entries.append(TimedLyric(str(segment["text"]), float(start), float(end)))
            except (KeyError, TypeError, ValueError) as e:
                raise LyricsLoadError(f"Invalid lyric segment #{position}: {segment!r}") from e
        return cls(entries)

    @classmethod
    def from_json(cls, file_path: str) -> Self:
        """Load lyrics from a JSON file holding ``{"segments": [...]}`` or a bare list."""
        try:
            with open(file_path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise LyricsLoadError(f"Error loading lyrics from {file_path}: {e}") from e

        segments = data.get("segments", []) if isinstance(data, dict) else data
        if not isinstance(segments, list):
            raise LyricsLoadError(f"No lyric segments found in {file_path}")
        sheet = cls.from_segments(segments)
        print(f"LyricSheet: Loaded {len(sheet)} lines from {file_path}")
        return sheet

    @classmethod
    def from_srt(cls, file_path: str) -> Self:
        """Load lyrics from an SRT subtitle file.

        Args:
            file_path: Path to the SRT file

        Returns:
            A new LyricSheet
        """
        try:
            with open(file_path, encoding="utf-8") as f:
                content = f.read()
        except OSError as e:
            raise LyricsLoadError(f"Error loading lyrics from SRT file {file_path}: {e}") from e

        entries = []
        for block in re.split(r"\n\s*\n", content.strip()):
            lines = block.strip().split("\n")
            # Index line, timestamp line, then at least one text line
            if len(lines) < 3:
                continue
            time_parts = lines[1].split(" --> ")
            if len(time_parts) != 2:
                continue
            start_time = parse_srt_timestamp(time_parts[0])
            end_time = parse_srt_timestamp(time_parts[1])
            entries.append(TimedLyric(" ".join(line.strip() for line in lines[2:]), start_time, end_time))

        sheet = cls(entries)
        print(f"LyricSheet: Loaded {len(sheet)} lines from {file_path}")
        return sheet

    @classmethod
    def from_lrc(cls, file_path: str, duration: Optional[float] = None) -> Self:
        """Load lyrics from an LRC file.

        Each line lasts until the next timestamped line starts. The final line
        ends at ``duration`` when it is known, otherwise a few seconds after it
        starts.

        Args:
            file_path: Path to the LRC file
            duration: Optional song duration in seconds

        Returns:
            A new LyricSheet
        """
        try:
            with open(file_path, encoding="utf-8") as f:
                raw_lines = f.read().splitlines()
        except OSError as e:
            raise LyricsLoadError(f"Error loading lyrics from LRC file {file_path}: {e}") from e

        stamped: List[Tuple[float, str]] = []
        for raw in raw_lines:
            tags = LRC_TAG_PATTERN.findall(raw)
            if not tags:
                continue
            text = LRC_TAG_PATTERN.sub("", raw).strip()
            for minutes, seconds in tags:
                stamped.append((int(minutes) * 60 + float(seconds.replace(":", ".")), text))

        stamped.sort(key=lambda item: item[0])
        entries = []
        for i, (start, text) in enumerate(stamped):
            if i + 1 < len(stamped):
                end = stamped[i + 1][0]
            elif duration and duration > start:
                end = duration
            else:
                end = start + DEFAULT_LAST_LINE_SECONDS
            # Blank LRC lines only mark where the previous line ends
            if text:
                entries.append(TimedLyric(text, start, end))

        sheet = cls(entries)
        print(f"LyricSheet: Loaded {len(sheet)} lines from {file_path}")
        return sheet


def parse_srt_timestamp(timestamp: str) -> float:
    """Convert SRT timestamp format (00:00:00,000) to seconds.

    Args:
        timestamp: SRT format timestamp string

    Returns:
        Timestamp in seconds as a float
    """
    timestamp = timestamp.strip().replace(",", ".")
    parts = timestamp.split(":")
    if len(parts) == 3:
        try:
            return float(parts[0]) * 3600 + float(parts[1]) * 60 + float(parts[2])
        except ValueError:
            return 0.0
    return 0.0


def load_lyrics_file(file_path: str, duration: Optional[float] = None) -> LyricSheet:
    """Load a lyric file, choosing the parser from its extension.

    Args:
        file_path: Path to a .json, .srt or .lrc file
        duration: Optional song duration, used to end the last LRC line

    Returns:
        The loaded LyricSheet

    Raises:
        LyricsLoadError: If the file is missing, unsupported or malformed
    """
    if not os.path.exists(file_path):
        raise LyricsLoadError(f"Lyrics file not found: {file_path}")

    extension = os.path.splitext(file_path)[1].lower()
    if extension == ".json":
        return LyricSheet.from_json(file_path)
    if extension == ".srt":
        return LyricSheet.from_srt(file_path)
    if extension == ".lrc":
        return LyricSheet.from_lrc(file_path, duration)
    raise LyricsLoadError(f"Unsupported lyrics format '{extension}' for {file_path}")
