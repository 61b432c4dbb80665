"""
Turns models into a flat, deduplicated pair of ``data`` and ``included`` resource objects.

Resources are discovered breadth-first: every model added is queued together with the
include tree it was reached with, and draining the queue walks the relationships named
by that tree.  A resource reached through several paths is rendered once, but each
path still gets its nested includes expanded.
"""
import typing
from collections import OrderedDict, deque

from .document.builders import ResourceReprBuilder
from .document.models import LinksRepr, ResourceIdRepr, ResourceRepr
from .exceptions import InternalServerError
from .include import IncludeTree, find_includable
from .schema.field import Attribute, Relationship

if typing.TYPE_CHECKING:
    from .context import Context  # noqa: F401
    from .resource import Resource  # noqa: F401

Key = typing.Tuple[str, str]


class _Pending(typing.NamedTuple):
    resource: "Resource"
    model: typing.Any
    include: IncludeTree
    key: Key


class Serializer:
    context: "Context"
    _builders: "OrderedDict[Key, ResourceReprBuilder]"
    _primary: typing.List[Key]
    _queue: typing.Deque[_Pending]
    _related: typing.Dict[typing.Tuple[Key, str], typing.List[typing.Any]]

    def add_primary(self, resource: "Resource", model: typing.Any, include: IncludeTree) -> Key:
        key = self._add(resource, model, include)
        if key not in self._primary:
            self._primary.append(key)
        return key

    def add_included(self, resource: "Resource", model: typing.Any, include: IncludeTree) -> Key:
        return self._add(resource, model, include)

    def serialize(self) -> typing.Tuple[typing.List[ResourceRepr], typing.List[ResourceRepr]]:
        """
        Drains the pending relationship traversals and returns the primary resource objects
        in the order they were added, and the included ones in the order they were discovered.
        """
        while self._queue:
            self._traverse(self._queue.popleft())
        primary = set(self._primary)
        return (
            [self._builders[key]() for key in self._primary],
            [builder() for key, builder in self._builders.items() if key not in primary],
        )

    def _context_for(self, resource: "Resource", model: typing.Any) -> "Context":
        return self.context.with_resource(resource).with_model(model).with_field(None)

    def _add(self, resource: "Resource", model: typing.Any, include: IncludeTree) -> Key:
        context = self._context_for(resource, model)
        key = (resource.type, resource.get_id(model, context))
        if key not in self._builders:
            self._builders[key] = self._build(resource, model, key, context)
        self._queue.append(_Pending(resource, model, include, key))
        return key

    def _build(
        self, resource: "Resource", model: typing.Any, key: Key, context: "Context"
    ) -> ResourceReprBuilder:
        builder = ResourceReprBuilder(*key)

        for name, field in context.sparse_fields(resource).items():
            field_context = context.with_field(field)
            if not field.is_visible(field_context):
                continue
            if isinstance(field, Attribute):
                value = field.get_value(resource, field_context)
                builder.add_attribute(name, field.serialize_value(value, field_context))
            elif isinstance(field, Relationship):
                meta = field.meta_values(field_context)
                if meta:
                    builder.relationship(name, field.many).meta.update(meta)
                if field.has_linkage:
                    related = self._fetch_related(resource, field, key, field_context)
                    self._set_linkage(builder, field, related)

        builder.meta.update(
            (entry.name, entry.value(context))
            for entry in resource.meta()
            if entry.is_visible(context)
        )

        self_link = self.context.api.resource_link(resource, key[1])
        if self_link is not None:
            builder.links = LinksRepr(self_=self_link)
        return builder

    def _traverse(self, pending: _Pending) -> None:
        resource, model, include, key = pending
        if not include:
            return
        context = self._context_for(resource, model)
        selected = context.sparse_fields(resource)
        for name, subtree in include.items():
            field = find_includable(context, resource, name)
            if field is None:
                # another candidate of a polymorphic relationship declares it
                continue
            related = self._fetch_related(resource, field, key, context.with_field(field))
            if name in selected:
                self._set_linkage(self._builders[key], field, related)
            for related_model in related:
                self.add_included(
                    self._resolve_resource(field, related_model, context), related_model, subtree
                )

    def _fetch_related(
        self, resource: "Resource", field: Relationship, key: Key, context: "Context"
    ) -> typing.List[typing.Any]:
        cached = self._related.get((key, field.name))
        if cached is not None:
            return cached
        value = field.get_value(resource, context)
        if field.many:
            related = [] if value is None else list(value)
        else:
            related = [] if value is None else [value]
        self._related[(key, field.name)] = related
        return related

    def _set_linkage(
        self, builder: ResourceReprBuilder, field: Relationship, related: typing.List[typing.Any]
    ) -> None:
        rel_builder = builder.relationship(field.name, field.many)
        if rel_builder.has_data:
            return
        context = self.context.with_field(field)
        identifiers = []
        for related_model in related:
            related_resource = self._resolve_resource(field, related_model, context)
            identifiers.append(
                ResourceIdRepr(
                    type=related_resource.type,
                    id=related_resource.get_id(related_model, context),
                )
            )
        rel_builder.set_linkage(identifiers)

    def _resolve_resource(
        self, field: Relationship, model: typing.Any, context: "Context"
    ) -> "Resource":
        candidates = self.context.api.related_resources(field)
        if len(field.types) == 1 and candidates:
            return candidates[0]
        for candidate in candidates:
            if candidate.accepts(model, context.with_resource(candidate).with_model(model)):
                return candidate
        raise InternalServerError(
            f'no resource accepts the model related through "{field.name}"'
        )

    def __init__(self, context: "Context"):
        self.context = context
        self._builders = OrderedDict()
        self._primary = []
        self._queue = deque()
        self._related = {}
