"""
Turns a :py:class:`jsonapi_server.document.models.DocumentRepr` into plain JSON-compatible
values.

.. code-block:: python

   import json

   from jsonapi_server.document.models import DocumentRepr, ResourceRepr
   from jsonapi_server.document.renderer import ReprRenderer

   document = DocumentRepr(data=ResourceRepr(type="books", id="1"))
   print(json.dumps(ReprRenderer()(document)))

Attribute and meta values may hold :py:class:`datetime.datetime`,
:py:class:`datetime.date`, :py:class:`decimal.Decimal` and :py:class:`bytes` besides
the JSON scalars; they are rendered as ISO 8601 strings, strings (or floats) and
base64 strings respectively.  Any other type is reported with a JSON pointer to the
offending member.
"""

import base64
import collections.abc
import datetime
import decimal
import typing

from .models import (
    DocumentRepr,
    ErrorRepr,
    LinkageRepr,
    LinksRepr,
    Missing,
    MissingType,
    ResourceIdRepr,
    ResourceRepr,
)
from .types import JSONScalar, JSONValue, MutableJSONObject


class TZLocalizer(typing.Protocol):
    def localize(self, dt: datetime.datetime) -> datetime.datetime:
        ...  # pragma: nocover


def escape_pointer_token(token: str) -> str:
    return token.replace("~", "~0").replace("/", "~1")


def child_pointer(pointer: str, token: typing.Union[str, int]) -> str:
    return f"{pointer}/{escape_pointer_token(str(token))}"


class ReprRenderer:
    render_decimal_as_str: bool
    assume_naive_timezone_as: typing.Optional[datetime.tzinfo]

    def _datetime(self, value: datetime.datetime) -> str:
        tz = self.assume_naive_timezone_as
        if value.tzinfo is None:
            if tz is None:
                return value.isoformat()
            if hasattr(tz, "localize"):
                value = typing.cast(TZLocalizer, tz).localize(value)
            else:
                value = value.replace(tzinfo=tz)
        return value.astimezone(datetime.timezone.utc).isoformat()

    def _scalar(self, value: typing.Any) -> typing.Union[JSONScalar, None, MissingType]:
        if value is None or isinstance(value, (str, bool, int, float)):
            return value
        if isinstance(value, datetime.datetime):
            return self._datetime(value)
        if isinstance(value, datetime.date):
            return value.isoformat()
        if isinstance(value, decimal.Decimal):
            return str(value) if self.render_decimal_as_str else float(value)
        if isinstance(value, (bytes, bytearray)):
            return base64.b64encode(value).decode("ascii")
        return Missing

    def render_value(self, value: typing.Any, pointer: str = "") -> JSONValue:
        """
        Renders an attribute or meta value.  ``pointer`` locates ``value`` in the
        document and only serves error reporting.
        """
        scalar = self._scalar(value)
        if scalar is not Missing:
            return typing.cast(JSONValue, scalar)
        if isinstance(value, collections.abc.Mapping):
            return {
                str(k): self.render_value(v, child_pointer(pointer, k)) for k, v in value.items()
            }
        if isinstance(value, (collections.abc.Sequence, collections.abc.Set)):
            return [self.render_value(v, child_pointer(pointer, i)) for i, v in enumerate(value)]
        raise TypeError(f"{pointer or '/'}: cannot render a value of type {type(value).__name__}")

    def render_links(self, links: LinksRepr) -> MutableJSONObject:
        return dict(links.items())

    def render_resource_id(self, repr_: ResourceIdRepr, pointer: str) -> MutableJSONObject:
        result: MutableJSONObject = {"type": repr_.type, "id": repr_.id}
        if repr_.meta:
            result["meta"] = self.render_value(repr_.meta, child_pointer(pointer, "meta"))
        return result

    def render_linkage(self, repr_: LinkageRepr, pointer: str) -> MutableJSONObject:
        result: MutableJSONObject = {}
        data_pointer = child_pointer(pointer, "data")
        if repr_.data is None:
            result["data"] = None
        elif isinstance(repr_.data, ResourceIdRepr):
            result["data"] = self.render_resource_id(repr_.data, data_pointer)
        elif repr_.data is not Missing:
            result["data"] = [
                self.render_resource_id(item, child_pointer(data_pointer, i))
                for i, item in enumerate(typing.cast(typing.Sequence[ResourceIdRepr], repr_.data))
            ]
        if repr_.links:
            result["links"] = self.render_links(repr_.links)
        if repr_.meta:
            result["meta"] = self.render_value(repr_.meta, child_pointer(pointer, "meta"))
        return result

    def render_resource(self, repr_: ResourceRepr, pointer: str) -> MutableJSONObject:
        result: MutableJSONObject = {"type": repr_.type, "id": repr_.id}
        if repr_.attributes:
            attributes_pointer = child_pointer(pointer, "attributes")
            result["attributes"] = {
                name: self.render_value(value, child_pointer(attributes_pointer, name))
                for name, value in repr_.attributes.items()
            }
        if repr_.relationships:
            relationships_pointer = child_pointer(pointer, "relationships")
            result["relationships"] = {
                name: self.render_linkage(linkage, child_pointer(relationships_pointer, name))
                for name, linkage in repr_.relationships.items()
            }
        if repr_.links:
            result["links"] = self.render_links(repr_.links)
        if repr_.meta:
            result["meta"] = self.render_value(repr_.meta, child_pointer(pointer, "meta"))
        return result

    def render_error(self, repr_: ErrorRepr, pointer: str = "") -> MutableJSONObject:
        result: MutableJSONObject = {
            member: value
            for member, value in (
                ("status", repr_.status),
                ("title", repr_.title),
                ("detail", repr_.detail),
            )
            if value is not None
        }
        if repr_.source is not None:
            result["source"] = {
                member: value
                for member, value in (
                    ("pointer", repr_.source.pointer),
                    ("parameter", repr_.source.parameter),
                    ("header", repr_.source.header),
                )
                if value is not None
            }
        if repr_.meta:
            result["meta"] = self.render_value(repr_.meta, child_pointer(pointer, "meta"))
        return result

    def __call__(self, document: DocumentRepr) -> MutableJSONObject:
        result: MutableJSONObject = {}
        if document.jsonapi:
            result["jsonapi"] = dict(document.jsonapi)
        if document.data is None:
            result["data"] = None
        elif isinstance(document.data, ResourceRepr):
            result["data"] = self.render_resource(document.data, "/data")
        elif document.data is not Missing:
            result["data"] = [
                self.render_resource(r, f"/data/{i}")
                for i, r in enumerate(typing.cast(typing.Sequence[ResourceRepr], document.data))
            ]
        if document.errors:
            result["errors"] = [
                self.render_error(e, f"/errors/{i}") for i, e in enumerate(document.errors)
            ]
        if document.included:
            result["included"] = [
                self.render_resource(r, f"/included/{i}") for i, r in enumerate(document.included)
            ]
        if document.meta:
            result["meta"] = self.render_value(document.meta, "/meta")
        if document.links:
            result["links"] = self.render_links(document.links)
        return result

    def __init__(
        self,
        render_decimal_as_str: bool = True,
        assume_naive_timezone_as: typing.Optional[datetime.tzinfo] = None,
    ):
        self.render_decimal_as_str = render_decimal_as_str
        self.assume_naive_timezone_as = assume_naive_timezone_as
