import abc
import enum
import logging
import typing

from ..document.builders import DocumentBuilder
from ..exceptions import ForbiddenError, MethodNotAllowedError
from ..http import Response, json_api_response
from ..include import IncludeTree, parse_include, validate_include
from ..resource import Capability
from ..schema.concerns import HasMeta, HasVisibility

if typing.TYPE_CHECKING:
    from ..context import Context  # noqa: F401

logger = logging.getLogger(__name__)

E = typing.TypeVar("E", bound="Endpoint")


class Route(enum.Enum):
    """
    The shape of the path following the resource type.
    """

    #: ``/{type}``
    COLLECTION = 0
    #: ``/{type}/{id}``
    RESOURCE = 1

    def match(self, segments: typing.Sequence[str]) -> bool:
        if len(segments) != self.value:
            return False
        return all(segments)


class Endpoint(HasVisibility, HasMeta, metaclass=abc.ABCMeta):
    """
    A handler for one operation on a resource.

    An endpoint only responds to requests whose path has the shape of its
    :py:attr:`route`; for such a request with a different method it raises
    :py:class:`MethodNotAllowedError`, which leaves the other endpoints of the
    resource a chance to handle it.
    """

    route: typing.ClassVar[Route]
    method: typing.ClassVar[str]
    required_capabilities: typing.ClassVar[typing.FrozenSet[Capability]] = frozenset()

    _default_include: typing.Optional[typing.List[str]] = None

    def capabilities(self) -> typing.FrozenSet[Capability]:
        return self.required_capabilities

    def default_include(self: E, *paths: str) -> E:
        self._default_include = list(paths)
        return self

    def handle(self, context: "Context") -> typing.Optional[Response]:
        segments = context.segments[1:]
        if not self.route.match(segments):
            return None
        if context.method != self.method:
            raise MethodNotAllowedError(
                f"{context.method} is not allowed on this path", meta={"allow": self.method}
            )
        logger.debug("%s handles %s %s", self, context.method, context.request.path)
        return self._handle(context.with_endpoint(self), segments)

    @abc.abstractmethod
    def _handle(self, context: "Context", segments: typing.Sequence[str]) -> Response:
        ...  # pragma: nocover

    def _assert_visible(self, context: "Context") -> None:
        if not self.is_visible(context):
            raise ForbiddenError()

    def _include(self, context: "Context") -> IncludeTree:
        assert context.resource is not None
        raw = context.query_param("include", self._default_include)
        tree = parse_include(raw)
        validate_include(context, [context.resource], tree)
        return tree

    def _document(self, context: "Context") -> DocumentBuilder:
        builder = DocumentBuilder()
        builder.jsonapi = {"version": context.api.VERSION}
        builder.meta.update(self.meta_values(context))
        return builder

    def _respond(
        self,
        context: "Context",
        builder: DocumentBuilder,
        status: int = 200,
        headers: typing.Optional[typing.Mapping[str, str]] = None,
    ) -> Response:
        return json_api_response(context.api.render(builder()), status=status, headers=headers)

    def __repr__(self):
        return f"<{self.__class__.__name__}>"
