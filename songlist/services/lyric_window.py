from __future__ import annotations

from songlist.models import VerseWindow


def split_verses(lyrics: str) -> list[str]:
    # Plain "\n" split: empty lines are verses too, unlike str.splitlines().
    return lyrics.split("\n")


def window_verses(lyrics: str, window: VerseWindow) -> str:
    verses = split_verses(lyrics)
    if window.verse_offset >= len(verses):
        return ""
    end = min(window.verse_offset + window.verse_limit, len(verses))
    return "\n".join(verses[window.verse_offset : end])
