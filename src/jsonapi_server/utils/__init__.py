import typing

from .formatting import english_enumerate  # noqa: F401

T = typing.TypeVar("T")


def assert_not_none(value: typing.Optional[T]) -> T:
    assert value is not None
    return value
