"""Tests for search matching and pagination arithmetic."""

from comic_portal.schemas import Comic
from comic_portal.search import clamp_page, filter_comics, matches, paginate, window_ids


def _comic(num: int, title: str = "", transcript: str = "") -> Comic:
    return Comic(id=num, title=title, transcript=transcript)


class TestWindow:
    def test_window_is_most_recent_first(self):
        assert window_ids(5, 100) == [5, 4, 3, 2, 1]

    def test_window_never_exceeds_size(self):
        ids = window_ids(1000, 100)

        assert len(ids) == 100
        assert ids[0] == 1000
        assert ids[-1] == 901

    def test_window_of_one(self):
        assert window_ids(1, 100) == [1]


class TestMatching:
    def test_title_match_is_case_insensitive(self):
        assert matches(_comic(1, title="Spider-Man"), "spider")

    def test_transcript_match(self):
        assert matches(_comic(1, title="Other", transcript="A SPIDER appears"), "spider")

    def test_alt_text_is_not_searched(self):
        comic = Comic(id=1, title="Other", alt="spider")

        assert not matches(comic, "spider")

    def test_filter_strips_and_lowercases_query(self):
        comics = [_comic(3, title="Spiders"), _comic(2, title="Cats"), _comic(1, transcript="spider web")]

        result = filter_comics(comics, "  SPIDER ")

        assert [c.id for c in result] == [3, 1]


class TestPagination:
    def test_last_partial_page(self):
        items = [_comic(n) for n in range(25, 0, -1)]

        page_items, offset, total_pages = paginate(items, 3, 10)

        assert len(page_items) == 5
        assert offset == 20
        assert total_pages == 3

    def test_empty_result_has_one_page(self):
        page_items, offset, total_pages = paginate([], 1, 10)

        assert page_items == []
        assert offset == 0
        assert total_pages == 1

    def test_page_past_end_is_empty(self):
        items = [_comic(n) for n in range(1, 4)]

        page_items, offset, total_pages = paginate(items, 5, 10)

        assert page_items == []
        assert offset == 40
        assert total_pages == 1

    def test_clamp_page_floors_to_one(self):
        assert clamp_page(0, 10) == (1, 10)
        assert clamp_page(-3, 10) == (1, 10)
        assert clamp_page(2, 0) == (2, 1)
        assert clamp_page(2, -5) == (2, 1)

    def test_clamp_page_caps_page_size(self):
        assert clamp_page(1, 500, max_page_size=50) == (1, 50)
        assert clamp_page(1, 500) == (1, 500)

    def test_clamp_page_handles_garbage(self):
        assert clamp_page("abc", None) == (1, 1)
        assert clamp_page("3", "20") == (3, 20)
