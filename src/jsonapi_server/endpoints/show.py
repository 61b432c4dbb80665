import typing

from ..exceptions import NotFoundError
from ..http import Response
from ..resource import Capability, Findable
from ..serializer import Serializer
from ..utils import assert_not_none
from .base import Endpoint, Route

if typing.TYPE_CHECKING:
    from ..context import Context  # noqa: F401


def find_model(context: "Context", id: str) -> typing.Any:
    resource = context.resource
    assert isinstance(resource, Findable)
    model = resource.find(id, context)
    if model is None:
        raise NotFoundError(f'"{context.resource.type}" resource "{id}" does not exist')
    return model


class Show(Endpoint):
    """
    ``GET /{type}/{id}``
    """

    route = Route.RESOURCE
    method = "GET"
    required_capabilities = frozenset([Capability.FIND])

    def _handle(self, context: "Context", segments: typing.Sequence[str]) -> Response:
        resource = assert_not_none(context.resource)
        context = context.with_model(find_model(context, segments[0]))
        self._assert_visible(context)

        serializer = Serializer(context)
        serializer.add_primary(resource, context.model, self._include(context))
        data, included = serializer.serialize()

        document = self._document(context)
        document.set_singleton(data[0])
        document.set_included(included)
        return self._respond(context, document)
