import typing

from ..http import Response
from ..resource import Capability, Deletable
from .base import Endpoint, Route
from .show import find_model

if typing.TYPE_CHECKING:
    from ..context import Context  # noqa: F401


class Delete(Endpoint):
    route = Route.RESOURCE
    method = "DELETE"
    required_capabilities = frozenset([Capability.FIND, Capability.DELETE])

    def _handle(self, context: "Context", segments: typing.Sequence[str]) -> Response:
        resource = context.resource
        assert isinstance(resource, Deletable)

        context = context.with_model(find_model(context, segments[0]))
        self._assert_visible(context)

        resource.delete(context.model, context)
        return Response(status=204)
