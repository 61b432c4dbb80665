"""
Reading a resource object from a request document and writing it onto a model.

The steps run in this order, and each one reports every problem it finds before the
request is rejected:

1. the members of ``attributes`` and ``relationships`` are matched with writable fields
   and deserialized,
2. missing fields get their defaults (on creation only) and missing required fields are
   reported,
3. validators run,
4. the values are set on the model.
"""
import collections.abc
import typing
from collections import OrderedDict

from ..exceptions import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    JSONAPIError,
    JSONAPIErrorCollection,
    NotFoundError,
    UnprocessableEntityError,
)
from ..resource import Findable
from ..schema.field import Field, Id, Relationship

if typing.TYPE_CHECKING:
    from ..context import Context  # noqa: F401


def get_resource_object(context: "Context") -> typing.Mapping[str, typing.Any]:
    body = context.body
    if not isinstance(body, collections.abc.Mapping) or not isinstance(
        body.get("data"), collections.abc.Mapping
    ):
        raise BadRequestError("request document must contain a resource object", pointer="/data")
    data = body["data"]
    for member in ("attributes", "relationships"):
        if member in data and not isinstance(data[member], collections.abc.Mapping):
            raise BadRequestError(f"{member} must be an object", pointer=f"/data/{member}")
    return data


def assert_resource_object_matches(
    context: "Context", data: typing.Mapping[str, typing.Any], id: typing.Optional[str] = None
) -> None:
    assert context.resource is not None
    if data.get("type") != context.resource.type:
        raise ConflictError(
            f'type must be "{context.resource.type}"', pointer="/data/type"
        )
    if id is not None and str(data.get("id")) != id:
        raise ConflictError(f'id must be "{id}"', pointer="/data/id")


def _raise_if_any(errors: typing.List[JSONAPIError]) -> None:
    if errors:
        raise JSONAPIErrorCollection(errors)


def _resolve_identifier(
    context: "Context", field: Relationship, identifier: typing.Any, pointer: str
) -> typing.Any:
    if (
        not isinstance(identifier, collections.abc.Mapping)
        or "type" not in identifier
        or "id" not in identifier
    ):
        raise BadRequestError("resource identifier must have type and id", pointer=pointer)
    type_ = identifier["type"]
    if field.types and type_ not in field.types:
        raise UnprocessableEntityError(f'type "{type_}" is not allowed here', pointer=pointer)
    resource = context.api.resources.get(type_)
    if not isinstance(resource, Findable):
        raise UnprocessableEntityError(f'type "{type_}" is not allowed here', pointer=pointer)
    model = resource.find(str(identifier["id"]), context.with_resource(resource).with_model(None))
    if model is None:
        raise NotFoundError(
            f'"{type_}" resource "{identifier["id"]}" does not exist', pointer=pointer
        )
    return model


def _parse_linkage(
    context: "Context", field: Relationship, value: typing.Any, pointer: str
) -> typing.Any:
    if not isinstance(value, collections.abc.Mapping) or "data" not in value:
        raise BadRequestError("relationship must contain data", pointer=pointer)
    data = value["data"]
    pointer = f"{pointer}/data"
    if field.many:
        if not isinstance(data, list):
            raise BadRequestError("data must be an array", pointer=pointer)
        return [
            _resolve_identifier(context, field, identifier, f"{pointer}/{i}")
            for i, identifier in enumerate(data)
        ]
    if data is None:
        return None
    return _resolve_identifier(context, field, data, pointer)


def pointer_for(field: Field) -> str:
    if field.location is None:
        return f"/data/{field.name}"
    return f"/data/{field.location}/{field.name}"


def deserialize_fields(
    context: "Context", data: typing.Mapping[str, typing.Any], creating: bool
) -> "OrderedDict[str, typing.Any]":
    """
    Matches the members of the resource object with the fields of the resource and
    returns their deserialized values keyed by field name.  ``id`` is included when the
    resource declares an :py:class:`Id` field.
    """
    assert context.resource is not None
    fields = context.fields(context.resource)
    values: "OrderedDict[str, typing.Any]" = OrderedDict()
    errors: typing.List[JSONAPIError] = []

    if creating and data.get("id") is not None:
        id_field = next((f for f in fields.values() if isinstance(f, Id)), None)
        if id_field is None or not id_field.is_writable(context.with_field(id_field), True):
            raise ForbiddenError("client-generated ids are not supported", pointer="/data/id")
        values[id_field.name] = id_field.deserialize_value(
            data["id"], context.with_field(id_field)
        )

    for location in ("attributes", "relationships"):
        for name, value in data.get(location, {}).items():
            pointer = f"/data/{location}/{name}"
            field = fields.get(name)
            field_context = context.with_field(field)
            if (
                field is None
                or field.location != location
                or not field.is_visible(field_context)
            ):
                errors.append(BadRequestError(f"unknown field: {name}", pointer=pointer))
                continue
            if not field.is_writable(field_context, creating):
                errors.append(ForbiddenError(f"field is not writable: {name}", pointer=pointer))
                continue
            try:
                if isinstance(field, Relationship):
                    value = _parse_linkage(field_context, field, value, pointer)
            except JSONAPIError as e:
                errors.append(e)
                continue
            try:
                values[name] = field.deserialize_value(value, field_context)
            except JSONAPIError as e:
                # pointers raised by a deserializer are relative to the member
                errors.append(e.prepend_pointer(pointer))
    _raise_if_any(errors)
    return values


def fill_defaults(
    context: "Context", values: "OrderedDict[str, typing.Any]", creating: bool
) -> None:
    """
    Fills the defaults of the missing writable fields and reports missing required
    fields.  Only applies on creation.
    """
    if not creating:
        return
    assert context.resource is not None
    errors: typing.List[JSONAPIError] = []
    for name, field in context.fields(context.resource).items():
        if name in values or isinstance(field, Id):
            continue
        field_context = context.with_field(field)
        if not field.is_visible(field_context) or not field.is_writable(field_context, True):
            continue
        if field.has_default:
            values[name] = field.default_value(field_context)
        elif field.is_required:
            errors.append(
                UnprocessableEntityError(f"{name} is required", pointer=pointer_for(field))
            )
    _raise_if_any(errors)


def validate_fields(context: "Context", values: "OrderedDict[str, typing.Any]") -> None:
    assert context.resource is not None
    fields = context.fields(context.resource)
    errors: typing.List[JSONAPIError] = []
    for name, value in values.items():
        field = fields[name]
        failures = field.validate_value(value, context.with_field(field))
        errors.extend(
            UnprocessableEntityError(message, pointer=pointer_for(field)) for message in failures
        )
    _raise_if_any(errors)


def set_values(context: "Context", model: typing.Any, values: "OrderedDict[str, typing.Any]"):
    assert context.resource is not None
    fields = context.fields(context.resource)
    for name, value in values.items():
        field = fields[name]
        field.set_value(context.resource, model, value, context.with_field(field))


def save_fields(
    context: "Context", model: typing.Any, data: typing.Mapping[str, typing.Any], creating: bool
) -> None:
    values = deserialize_fields(context, data, creating)
    fill_defaults(context, values, creating)
    validate_fields(context, values)
    set_values(context, model, values)
