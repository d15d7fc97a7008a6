import pytest
from pydantic import ValidationError

from songlist.models import NewSong, Song, SongFilter, SongUpdate, VerseWindow


def test_filter_defaults_to_first_page_of_five():
    song_filter = SongFilter()

    assert (song_filter.limit, song_filter.offset) == (5, 0)
    assert song_filter.substring_predicates() == {}
    assert song_filter.release_date is None


def test_filter_treats_empty_strings_as_wildcards():
    song_filter = SongFilter(title="", group="beat", lyrics="", link="", release_date="")

    assert song_filter.substring_predicates() == {"group": "beat"}
    assert song_filter.release_date is None


@pytest.mark.parametrize("field", ["limit", "offset"])
def test_filter_rejects_negative_window(field):
    with pytest.raises(ValidationError):
        SongFilter(**{field: -1})


def test_filter_is_immutable():
    song_filter = SongFilter(title="imag")

    with pytest.raises(ValidationError):
        song_filter.title = "other"


def test_legacy_wire_field_names_are_accepted():
    song = Song.model_validate(
        {"id": 3, "song": "Imagine", "group": "John Lennon", "text": "V1", "link": "l", "date": "1971-09-09"}
    )
    song_filter = SongFilter.model_validate({"song": "imag", "text": "v1", "date": "1971-09-09"})

    assert (song.title, song.lyrics, song.release_date) == ("Imagine", "V1", "1971-09-09")
    assert song_filter.substring_predicates() == {"title": "imag", "lyrics": "v1"}
    assert song_filter.release_date == "1971-09-09"


def test_new_song_optional_fields_default_to_empty():
    song = NewSong(title="Imagine", group="John Lennon")

    assert (song.lyrics, song.link, song.release_date) == ("", "", "")


def test_update_changes_skip_empty_and_missing_fields():
    update = SongUpdate(id=1, lyrics="", link="L2")

    assert update.lyrics is None
    assert update.changes() == {"link": "L2"}


def test_verse_window_is_separate_from_row_window():
    window = VerseWindow()

    assert (window.verse_limit, window.verse_offset) == (5, 0)
    assert not hasattr(window, "limit")
    with pytest.raises(ValidationError):
        VerseWindow(verse_offset=-2)
