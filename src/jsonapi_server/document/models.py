"""
Representation objects for the members of a JSON:API document.

They are plain values: the serializer fills them in through
:py:mod:`jsonapi_server.document.builders` and
:py:class:`jsonapi_server.document.renderer.ReprRenderer` turns them into JSON.
"""

import dataclasses
import datetime
import decimal
import typing
from collections import OrderedDict


class MissingType:
    """
    The type of :py:data:`Missing`, which tells an absent member from a ``null`` one.
    """

    _instance: typing.ClassVar[typing.Optional["MissingType"]] = None

    def __bool__(self):
        return False

    def __repr__(self):
        return "Missing"

    def __new__(cls) -> "MissingType":
        if cls._instance is None:
            cls._instance = object.__new__(cls)
        return cls._instance


Missing = MissingType()

Meta = typing.Dict[str, typing.Any]


@dataclasses.dataclass
class Repr:
    pass


#: the members of a links object, paired with the attribute holding each of them
LINK_MEMBERS: typing.Tuple[typing.Tuple[str, str], ...] = (
    ("self", "self_"),
    ("related", "related"),
    ("first", "first"),
    ("prev", "prev"),
    ("next", "next"),
    ("last", "last"),
)


@dataclasses.dataclass
class LinksRepr(Repr):
    """
    A ``links`` object.  Only plain URL links are supported.
    """

    self_: typing.Optional[str] = None
    related: typing.Optional[str] = None
    first: typing.Optional[str] = None
    prev: typing.Optional[str] = None
    next: typing.Optional[str] = None
    last: typing.Optional[str] = None

    def items(self) -> typing.Iterator[typing.Tuple[str, str]]:
        for member, attr in LINK_MEMBERS:
            url = getattr(self, attr)
            if url is not None:
                yield member, url

    def merge(self, other: "LinksRepr") -> "LinksRepr":
        """
        Returns a copy of this object overridden by the links present in ``other``.
        """
        overrides = {
            attr: getattr(other, attr)
            for _, attr in LINK_MEMBERS
            if getattr(other, attr) is not None
        }
        return dataclasses.replace(self, **overrides)

    def __bool__(self):
        return any(True for _ in self.items())


@dataclasses.dataclass
class ResourceIdRepr(Repr):
    type: str
    id: str
    meta: Meta = dataclasses.field(default_factory=dict)


#: the ``data`` of a relationship: :py:data:`Missing` when the relationship carries
#: no resource linkage, ``None`` for an empty to-one relationship
LinkageData = typing.Union[None, ResourceIdRepr, typing.Sequence[ResourceIdRepr], MissingType]


@dataclasses.dataclass
class LinkageRepr(Repr):
    data: LinkageData = Missing
    links: typing.Optional[LinksRepr] = None
    meta: Meta = dataclasses.field(default_factory=dict)


AttributeScalar = typing.Union[
    datetime.datetime, datetime.date, decimal.Decimal, str, int, float, bytes, None
]
AttributeValue = typing.Union[
    typing.Sequence[typing.Any],
    typing.Mapping[str, typing.Any],
    AttributeScalar,
]


@dataclasses.dataclass
class ResourceRepr(Repr):
    type: str
    id: str
    attributes: "OrderedDict[str, AttributeValue]" = dataclasses.field(
        default_factory=OrderedDict
    )
    relationships: "OrderedDict[str, LinkageRepr]" = dataclasses.field(
        default_factory=OrderedDict
    )
    links: typing.Optional[LinksRepr] = None
    meta: Meta = dataclasses.field(default_factory=dict)


@dataclasses.dataclass
class SourceRepr(Repr):
    """
    The ``source`` member of an error object.  At most one of the members is expected
    to be set.
    """

    pointer: typing.Optional[str] = None
    parameter: typing.Optional[str] = None
    header: typing.Optional[str] = None


@dataclasses.dataclass
class ErrorRepr(Repr):
    status: typing.Optional[str] = None
    title: typing.Optional[str] = None
    detail: typing.Optional[str] = None
    source: typing.Optional[SourceRepr] = None
    meta: Meta = dataclasses.field(default_factory=dict)


PrimaryData = typing.Union[None, ResourceRepr, typing.Sequence[ResourceRepr], MissingType]


@dataclasses.dataclass
class DocumentRepr(Repr):
    """
    A top-level document.

    ``data`` is a :py:class:`ResourceRepr` or ``None`` in a singleton document, a
    sequence of them in a collection document, and :py:data:`Missing` in a document
    carrying only ``errors`` or ``meta``.
    """

    data: PrimaryData = Missing
    included: typing.Sequence[ResourceRepr] = ()
    errors: typing.Sequence[ErrorRepr] = ()
    jsonapi: Meta = dataclasses.field(default_factory=dict)
    links: typing.Optional[LinksRepr] = None
    meta: Meta = dataclasses.field(default_factory=dict)

    def __post_init__(self):
        if self.data is Missing and not self.errors and not self.meta:
            raise ValueError("a document needs data, errors or meta")
        if self.data is not Missing and self.errors:
            raise ValueError("a document cannot carry both data and errors")
