import pytest

from grimorio.core.exceptions import InvalidOperation
from grimorio.schemas.common import Page
from grimorio.services.common import validate_page


def test_total_pages_rounds_up():
    page = Page[int].build(items=[11, 12, 13, 14, 15], page_number=2, page_size=10, total_count=15)

    assert page.total_pages == 2
    assert page.total_count == 15
    assert len(page.items) == 5


def test_empty_result_has_zero_pages():
    assert Page[int].build(items=[], page_number=1, page_size=10, total_count=0).total_pages == 0


@pytest.mark.parametrize("page_number,page_size", [(0, 10), (1, 0), (1, 101), (-3, 5)])
def test_invalid_page_parameters_are_rejected(page_number, page_size):
    with pytest.raises(InvalidOperation):
        validate_page(page_number, page_size)


def test_page_size_limits_are_inclusive():
    validate_page(1, 1)
    validate_page(7, 100)
