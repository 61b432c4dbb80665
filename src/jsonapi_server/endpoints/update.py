import typing

from ..http import Response
from ..resource import Capability, Updatable
from ..serializer import Serializer
from .base import Endpoint, Route
from .saving import assert_resource_object_matches, get_resource_object, save_fields
from .show import find_model

if typing.TYPE_CHECKING:
    from ..context import Context  # noqa: F401


class Update(Endpoint):
    """
    ``PATCH /{type}/{id}``: only the fields present in the request document are written.
    """

    route = Route.RESOURCE
    method = "PATCH"
    required_capabilities = frozenset([Capability.FIND, Capability.UPDATE])

    def _handle(self, context: "Context", segments: typing.Sequence[str]) -> Response:
        resource = context.resource
        assert isinstance(resource, Updatable)

        context = context.with_model(find_model(context, segments[0]))
        self._assert_visible(context)
        include = self._include(context)

        resource_object = get_resource_object(context)
        assert_resource_object_matches(context, resource_object, id=segments[0])

        save_fields(context, context.model, resource_object, creating=False)
        context = context.with_model(resource.update(context.model, context))

        serializer = Serializer(context)
        serializer.add_primary(resource, context.model, include)
        data, included = serializer.serialize()

        document = self._document(context)
        document.set_singleton(data[0])
        document.set_included(included)
        return self._respond(context, document)
