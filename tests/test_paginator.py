import math

import pytest

from skintracker.core.errors import EmptyPage
from skintracker.core.search.paginator import paginate, total_pages


def test_pages_partition_results_exactly() -> None:
    for count in range(0, 13):
        results = [f"skin-{idx}" for idx in range(count)]
        for size in range(1, 6):
            collected: list[str] = []
            page_index = 0
            while True:
                try:
                    page = paginate(results, page_index, size)
                except EmptyPage:
                    break
                assert page.total_pages == max(1, math.ceil(count / size))
                collected.extend(page.items)
                page_index += 1
            assert collected == results
            assert total_pages(count, size) == max(1, math.ceil(count / size))


def test_navigation_flags() -> None:
    results = list(range(7))

    first = paginate(results, 0, 3)
    assert first.items == [0, 1, 2]
    assert first.has_prev is False
    assert first.has_next is True

    last = paginate(results, 2, 3)
    assert last.items == [6]
    assert last.offset == 6
    assert last.has_prev is True
    assert last.has_next is False
    assert last.total_pages == 3


def test_exact_multiple_has_no_next_page() -> None:
    page = paginate(list(range(6)), 1, 3)
    assert page.has_next is False
    with pytest.raises(EmptyPage):
        paginate(list(range(6)), 2, 3)


def test_empty_results_have_one_page_but_no_items() -> None:
    assert total_pages(0, 5) == 1
    with pytest.raises(EmptyPage):
        paginate([], 0, 5)


def test_invalid_arguments() -> None:
    with pytest.raises(EmptyPage):
        paginate([1, 2, 3], -1, 2)
    with pytest.raises(ValueError):
        paginate([1, 2, 3], 0, 0)
