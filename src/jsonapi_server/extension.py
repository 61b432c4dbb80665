import abc
import typing

from .http import Response

if typing.TYPE_CHECKING:
    from .context import Context  # noqa: F401


class Extension(metaclass=abc.ABCMeta):
    """
    A JSON:API extension.  An extension is activated when the client names its
    :py:attr:`uri` in the ``ext`` parameter of both ``Content-Type`` and ``Accept``.
    """

    @property
    @abc.abstractmethod
    def uri(self) -> str:
        ...  # pragma: nocover

    @abc.abstractmethod
    def handle(self, context: "Context") -> typing.Optional[Response]:
        """
        Returns the response for the request, or None to let the resource endpoints
        handle it.
        """
        ...  # pragma: nocover
