import collections.abc
import dataclasses
import typing
from collections import OrderedDict

from .http import Request

if typing.TYPE_CHECKING:
    from .api import JsonApi  # noqa: F401
    from .endpoints.base import Endpoint  # noqa: F401
    from .resource import Resource  # noqa: F401
    from .schema.field import Field  # noqa: F401


@dataclasses.dataclass(frozen=True)
class Context:
    """
    The state of a request at a given step of its processing.

    A :py:class:`Context` is never modified; every ``with_*`` method returns a new
    instance, so that the routing state of one request is never observed by another.
    """

    api: "JsonApi"
    request: Request
    resource: typing.Optional["Resource"] = None
    endpoint: typing.Optional["Endpoint"] = None
    query: typing.Any = None
    model: typing.Any = None
    field: typing.Optional["Field"] = None

    def with_resource(self, resource: "Resource") -> "Context":
        return dataclasses.replace(self, resource=resource)

    def with_endpoint(self, endpoint: "Endpoint") -> "Context":
        return dataclasses.replace(self, endpoint=endpoint)

    def with_query(self, query: typing.Any) -> "Context":
        return dataclasses.replace(self, query=query)

    def with_model(self, model: typing.Any) -> "Context":
        return dataclasses.replace(self, model=model)

    def with_field(self, field: typing.Optional["Field"]) -> "Context":
        return dataclasses.replace(self, field=field)

    @property
    def method(self) -> str:
        return self.request.method

    @property
    def body(self) -> typing.Any:
        return self.request.body

    @property
    def path(self) -> str:
        """
        The request path relative to the API's base path, without the surrounding slashes.
        """
        return self.api.strip_base_path(self.request.path)

    @property
    def segments(self) -> typing.Tuple[str, ...]:
        path = self.path
        return tuple(path.split("/")) if path else ()

    def query_param(self, name: str, default: typing.Any = None) -> typing.Any:
        return self.request.query.get(name, default)

    def fields(self, resource: "Resource") -> "OrderedDict[str, Field]":
        return OrderedDict((field.name, field) for field in resource.fields())

    def sparse_fields(self, resource: "Resource") -> "OrderedDict[str, Field]":
        """
        Returns the fields of ``resource`` selected by ``fields[<type>]``, or all of them
        if the client did not restrict the type.
        """
        fields = self.fields(resource)
        selection = self.query_param("fields")
        if not isinstance(selection, collections.abc.Mapping) or resource.type not in selection:
            return fields
        value = selection[resource.type]
        if isinstance(value, str):
            names = {name.strip() for name in value.split(",")}
        else:
            names = {str(name) for name in value}
        return OrderedDict((name, field) for name, field in fields.items() if name in names)
