import pytest

from analysis.pagination import PaginationInfo, UnparseablePagination, parse_pagination_text, total_pages


def test_parses_range_with_thousands_separator():
    info = parse_pagination_text("11-20 of 1,234")
    assert info == PaginationInfo(range_start=11, range_end=20, total=1234)
    assert info.page_size == 10


def test_unmatched_text_is_unparseable():
    result = parse_pagination_text("Loading...")
    assert isinstance(result, UnparseablePagination)
    assert total_pages(result) is None


def test_empty_text_is_unparseable():
    assert isinstance(parse_pagination_text(None), UnparseablePagination)


@pytest.mark.parametrize("text, expected", [
    ("1-10 of 25", 3),
    ("1-10 of 10", 1),
    ("1-25 of 26", 2),
])
def test_total_pages_from_first_page(text, expected):
    assert total_pages(parse_pagination_text(text)) == expected


def test_empty_collection_has_zero_pages():
    assert total_pages(parse_pagination_text("1-0 of 0")) == 0


def test_zero_total_with_real_page_span_is_rejected():
    assert total_pages(parse_pagination_text("1-10 of 0")) is None


def test_missing_metadata_has_no_page_count():
    assert total_pages(None) is None
