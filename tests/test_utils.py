import pytest

from app.utils import ensure_url, normalize_imdb_id, parse_skip, parse_year


def test_normalize_imdb_id():
    assert normalize_imdb_id(" tt0111161 ") == "tt0111161"
    assert normalize_imdb_id("tt") is None
    assert normalize_imdb_id("nm0000001") is None
    assert normalize_imdb_id(111161) is None


@pytest.mark.parametrize(
    ("value", "expected"),
    [(1994, 1994), ("2011–2019", 2011), ("", None), ("unknown", None), (3000, None), (True, None)],
)
def test_parse_year(value, expected):
    assert parse_year(value) == expected


def test_ensure_url():
    assert ensure_url("https://example.com/p.jpg") == "https://example.com/p.jpg"
    assert ensure_url("/p.jpg") is None
    assert ensure_url(None) is None


@pytest.mark.parametrize(
    ("extra", "expected"),
    [(None, 0), ("skip=40", 40), ("genre=Drama&skip=20", 20), ("skip=abc", 0), ("skip=-5", 0)],
)
def test_parse_skip(extra, expected):
    assert parse_skip(extra) == expected
