import abc
import copy
import typing

from .document.models import ErrorRepr, SourceRepr


class JSONAPIServerException(Exception, metaclass=abc.ABCMeta):
    pass


class InvalidDeclarationError(JSONAPIServerException):
    message: str

    def __str__(self):
        return self.message

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ErrorProvider(metaclass=abc.ABCMeta):
    """
    Anything that can describe itself as a list of JSON:API error objects.
    """

    @abc.abstractmethod
    def json_api_errors(self) -> typing.Sequence[ErrorRepr]:
        ...  # pragma: nocover

    @abc.abstractmethod
    def json_api_status(self) -> str:
        ...  # pragma: nocover


def status_for_errors(errors: typing.Iterable[ErrorRepr]) -> str:
    """
    Returns the HTTP status for a set of errors: the common status if they all agree,
    otherwise the generic class of the most severe one (``"400"`` or ``"500"``).
    """
    statuses = {e.status for e in errors if e.status is not None}
    if len(statuses) == 1:
        return statuses.pop()
    if any(s.startswith("5") for s in statuses):
        return "500"
    return "400"


T = typing.TypeVar("T", bound="JSONAPIError")


class JSONAPIError(JSONAPIServerException, ErrorProvider):
    status: typing.ClassVar[str] = "500"
    title: typing.ClassVar[str] = "Internal Server Error"

    detail: typing.Optional[str]
    source: typing.Optional[SourceRepr]
    meta: typing.Dict[str, typing.Any]

    def __str__(self):
        return self.detail or self.title

    def with_source(
        self: T,
        *,
        pointer: typing.Optional[str] = None,
        parameter: typing.Optional[str] = None,
        header: typing.Optional[str] = None,
    ) -> T:
        err = copy.copy(self)
        err.source = SourceRepr(pointer=pointer, parameter=parameter, header=header)
        return err

    def prepend_pointer(self: T, prefix: str) -> T:
        err = copy.copy(self)
        pointer = self.source.pointer if self.source is not None else None
        err.source = SourceRepr(pointer=prefix + (pointer or ""))
        return err

    def json_api_errors(self) -> typing.Sequence[ErrorRepr]:
        return [
            ErrorRepr(
                status=self.status,
                title=self.title,
                detail=self.detail,
                source=self.source,
                meta=dict(self.meta),
            )
        ]

    def json_api_status(self) -> str:
        return self.status

    def __init__(
        self,
        detail: typing.Optional[str] = None,
        *,
        pointer: typing.Optional[str] = None,
        parameter: typing.Optional[str] = None,
        header: typing.Optional[str] = None,
        meta: typing.Optional[typing.Dict[str, typing.Any]] = None,
    ):
        super().__init__(detail or self.title)
        self.detail = detail
        self.source = (
            SourceRepr(pointer=pointer, parameter=parameter, header=header)
            if pointer is not None or parameter is not None or header is not None
            else None
        )
        self.meta = meta if meta is not None else {}


class BadRequestError(JSONAPIError):
    status = "400"
    title = "Bad Request"


class ForbiddenError(JSONAPIError):
    status = "403"
    title = "Forbidden"


class NotFoundError(JSONAPIError):
    status = "404"
    title = "Not Found"


class ResourceNotFoundError(NotFoundError):
    type: str

    def __init__(self, type: str):
        super().__init__(f'no resource known as "{type}"')
        self.type = type


class MethodNotAllowedError(JSONAPIError):
    status = "405"
    title = "Method Not Allowed"


class NotAcceptableError(JSONAPIError):
    status = "406"
    title = "Not Acceptable"


class ConflictError(JSONAPIError):
    status = "409"
    title = "Conflict"


class UnsupportedMediaTypeError(JSONAPIError):
    status = "415"
    title = "Unsupported Media Type"


class UnprocessableEntityError(JSONAPIError):
    status = "422"
    title = "Unprocessable Entity"


class InternalServerError(JSONAPIError):
    status = "500"
    title = "Internal Server Error"


class JSONAPIErrorCollection(JSONAPIServerException, ErrorProvider):
    errors: typing.Sequence[JSONAPIError]

    def __str__(self):
        return "; ".join(str(e) for e in self.errors)

    def json_api_errors(self) -> typing.Sequence[ErrorRepr]:
        return [repr_ for e in self.errors for repr_ in e.json_api_errors()]

    def json_api_status(self) -> str:
        return status_for_errors(self.json_api_errors())

    def __init__(self, errors: typing.Sequence[JSONAPIError]):
        assert errors
        super().__init__(errors)
        self.errors = errors
