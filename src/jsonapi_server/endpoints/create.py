import typing

from ..http import Response
from ..resource import Capability, Creatable
from ..serializer import Serializer
from .base import Endpoint, Route
from .saving import assert_resource_object_matches, get_resource_object, save_fields

if typing.TYPE_CHECKING:
    from ..context import Context  # noqa: F401


class Create(Endpoint):
    """
    ``POST /{type}``: responds with ``201 Created`` and the created resource.
    """

    route = Route.COLLECTION
    method = "POST"
    required_capabilities = frozenset([Capability.CREATE])

    def _handle(self, context: "Context", segments: typing.Sequence[str]) -> Response:
        resource = context.resource
        assert isinstance(resource, Creatable)

        resource_object = get_resource_object(context)
        assert_resource_object_matches(context, resource_object)

        context = context.with_model(resource.new_model(context))
        self._assert_visible(context)
        include = self._include(context)

        save_fields(context, context.model, resource_object, creating=True)
        context = context.with_model(resource.create(context.model, context))

        serializer = Serializer(context)
        key = serializer.add_primary(resource, context.model, include)
        data, included = serializer.serialize()

        document = self._document(context)
        document.set_singleton(data[0])
        document.set_included(included)

        headers: typing.Dict[str, str] = {}
        location = context.api.resource_link(resource, key[1])
        if location is not None:
            headers["Location"] = location
        return self._respond(context, document, status=201, headers=headers)
