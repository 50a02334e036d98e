import pytest

from csv_converter.models import Dataset
from csv_converter.preview import paginate


def make_dataset(count):
    return Dataset(columns=("n",), records=tuple({"n": i} for i in range(count)))


def test_last_page_holds_the_remainder():
    page = paginate(make_dataset(12), page=3, page_size=5)
    assert page.page == 3
    assert page.page_count == 3
    assert page.total_records == 12
    assert page.records == [{"n": 10}, {"n": 11}]


def test_first_page():
    page = paginate(make_dataset(12), page=1, page_size=5)
    assert [r["n"] for r in page.records] == [0, 1, 2, 3, 4]
    assert page.columns == ["n"]


@pytest.mark.parametrize("requested", [4, 100, 0, -1])
def test_out_of_range_page_resets_to_first(requested):
    page = paginate(make_dataset(12), page=requested, page_size=5)
    assert page.page == 1
    assert len(page.records) == 5


def test_empty_and_missing_datasets():
    page = paginate(make_dataset(0), page=2, page_size=5)
    assert page.page == 1
    assert page.page_count == 0
    assert page.records == []

    page = paginate(None, page=1, page_size=5)
    assert page.records == []
    assert page.columns == []


def test_page_size_must_be_positive():
    with pytest.raises(ValueError):
        paginate(make_dataset(3), page=1, page_size=0)
