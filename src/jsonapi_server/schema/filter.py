import abc
import typing

from .concerns import HasVisibility

if typing.TYPE_CHECKING:
    from ..context import Context  # noqa: F401


class Filter(HasVisibility, metaclass=abc.ABCMeta):
    """
    A named filter that the client refers to as ``filter[<name>]``.

    The value is passed as is; a filter is free to interpret it as a scalar, a list
    or an operator-keyed mapping.
    """

    name: str

    @abc.abstractmethod
    def apply(self, query: typing.Any, value: typing.Any, context: "Context") -> None:
        ...  # pragma: nocover

    def __init__(self, name: str):
        self.name = name


class CustomFilter(Filter):
    fn: typing.Callable[[typing.Any, typing.Any, "Context"], None]

    def apply(self, query: typing.Any, value: typing.Any, context: "Context") -> None:
        self.fn(query, value, context)

    def __init__(self, name: str, fn: typing.Callable[[typing.Any, typing.Any, "Context"], None]):
        super().__init__(name)
        self.fn = fn
