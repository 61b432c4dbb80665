import pytest

from ..formatting import english_enumerate


@pytest.mark.parametrize(
    "items,conj,expected",
    [
        ([], ", or ", ""),
        (["a"], ", or ", "a"),
        (["a", "b"], ", or ", "a, or b"),
        (["a", "b", "c"], ", or ", "a, b, or c"),
        (["create", "list"], " and ", "create and list"),
    ],
)
def test_english_enumerate(items, conj, expected):
    assert english_enumerate(items, conj) == expected
