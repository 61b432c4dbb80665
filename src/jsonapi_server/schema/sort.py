import abc
import typing

from .concerns import HasVisibility

if typing.TYPE_CHECKING:
    from ..context import Context  # noqa: F401

ASC = "asc"
DESC = "desc"


class Sort(HasVisibility, metaclass=abc.ABCMeta):
    name: str

    @abc.abstractmethod
    def apply(self, query: typing.Any, direction: str, context: "Context") -> None:
        """
        :param str direction: either ``"asc"`` or ``"desc"``.
        """
        ...  # pragma: nocover

    def __init__(self, name: str):
        self.name = name


class CustomSort(Sort):
    fn: typing.Callable[[typing.Any, str, "Context"], None]

    def apply(self, query: typing.Any, direction: str, context: "Context") -> None:
        self.fn(query, direction, context)

    def __init__(self, name: str, fn: typing.Callable[[typing.Any, str, "Context"], None]):
        super().__init__(name)
        self.fn = fn
