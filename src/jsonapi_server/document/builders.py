"""
Mutable counterparts of :py:mod:`jsonapi_server.document.models`.

A resource object is assembled member by member while its fields are walked, and a
relationship may receive its linkage late, once the include resolver has fetched the
related models.  The builders collect those pieces and produce the immutable
representation on call.
"""
import abc
import typing
from collections import OrderedDict

from .models import (
    AttributeValue,
    DocumentRepr,
    LinkageData,
    LinkageRepr,
    LinksRepr,
    Meta,
    Missing,
    PrimaryData,
    Repr,
    ResourceIdRepr,
    ResourceRepr,
)


class ReprBuilder(metaclass=abc.ABCMeta):
    meta: Meta
    links: typing.Optional[LinksRepr] = None

    @abc.abstractmethod
    def __call__(self) -> Repr:
        ...  # pragma: nocover

    def __init__(self):
        self.meta = {}
        self.links = None


class RelationshipReprBuilder(ReprBuilder):
    many: bool
    _data: LinkageData

    @property
    def has_data(self) -> bool:
        return self._data is not Missing

    @property
    def empty(self) -> bool:
        """
        Whether the relationship object would carry none of ``data``, ``links`` and ``meta``.
        """
        return not self.has_data and not self.meta and not self.links

    def set_linkage(self, identifiers: typing.Sequence[ResourceIdRepr]) -> None:
        """
        Sets the resource linkage.  A to-one relationship takes the first identifier, or
        ``null`` when none is given.
        """
        if self.many:
            self._data = tuple(identifiers)
        else:
            self._data = identifiers[0] if identifiers else None

    def __call__(self) -> LinkageRepr:
        return LinkageRepr(data=self._data, links=self.links or None, meta=self.meta)

    def __init__(self, many: bool):
        super().__init__()
        self.many = many
        self._data = Missing


class ResourceReprBuilder(ReprBuilder):
    type: str
    id: str
    attributes: "OrderedDict[str, AttributeValue]"
    relationships: "OrderedDict[str, RelationshipReprBuilder]"

    def add_attribute(self, name: str, value: AttributeValue) -> None:
        self.attributes[name] = value

    def relationship(self, name: str, many: bool) -> RelationshipReprBuilder:
        builder = self.relationships.get(name)
        if builder is None:
            builder = self.relationships[name] = RelationshipReprBuilder(many)
        elif builder.many != many:
            raise TypeError(f"relationship {name} was already started with a different arity")
        return builder

    def __call__(self) -> ResourceRepr:
        return ResourceRepr(
            type=self.type,
            id=self.id,
            attributes=OrderedDict(self.attributes),
            relationships=OrderedDict(
                (name, rel()) for name, rel in self.relationships.items() if not rel.empty
            ),
            links=self.links or None,
            meta=self.meta,
        )

    def __init__(self, type: str, id: str):
        super().__init__()
        self.type = type
        self.id = id
        self.attributes = OrderedDict()
        self.relationships = OrderedDict()


class DocumentBuilder(ReprBuilder):
    jsonapi: Meta
    data: PrimaryData
    included: typing.Sequence[ResourceRepr]

    def set_singleton(self, data: typing.Optional[ResourceRepr]) -> None:
        self.data = data

    def set_collection(self, data: typing.Iterable[ResourceRepr]) -> None:
        self.data = list(data)

    def set_included(self, included: typing.Iterable[ResourceRepr]) -> None:
        self.included = list(included)

    def merge_links(self, links: LinksRepr) -> None:
        self.links = (self.links or LinksRepr()).merge(links)

    def __call__(self) -> DocumentRepr:
        return DocumentRepr(
            data=self.data,
            included=self.included,
            jsonapi=self.jsonapi,
            links=self.links or None,
            meta=self.meta,
        )

    def __init__(self):
        super().__init__()
        self.jsonapi = {}
        self.data = Missing
        self.included = ()
