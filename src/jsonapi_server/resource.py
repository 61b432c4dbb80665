"""
This module contains the base class for resource definitions and a series of
capability interfaces a resource implements to be served by the endpoints.

A resource never has to inherit from the capability interfaces: the check is
structural, which means a resource is regarded as :py:class:`Findable` as soon as
it defines ``find()``, and so on.
"""
import abc
import collections.abc
import enum
import typing

if typing.TYPE_CHECKING:
    from .context import Context  # noqa: F401
    from .endpoints.base import Endpoint  # noqa: F401
    from .schema.field import Field  # noqa: F401
    from .schema.filter import Filter  # noqa: F401
    from .schema.meta import Meta  # noqa: F401
    from .schema.sort import Sort  # noqa: F401


def _defines(C: type, *names: str) -> typing.Any:
    mro = C.__mro__
    for name in names:
        for B in mro:
            if name in B.__dict__:
                if B.__dict__[name] is None:
                    return NotImplemented
                break
        else:
            return NotImplemented
    return True


class _Capability(metaclass=abc.ABCMeta):
    _methods: typing.ClassVar[typing.Tuple[str, ...]] = ()

    @classmethod
    def __subclasshook__(cls, C):
        if "_methods" in cls.__dict__:
            return _defines(C, *cls._methods)
        return NotImplemented


class Findable(_Capability):
    _methods = ("find",)

    @abc.abstractmethod
    def find(self, id: str, context: "Context") -> typing.Any:
        """
        Returns the model identified by ``id``, or None if there is no such model.
        """
        ...  # pragma: nocover


class Listable(_Capability):
    _methods = ("query", "results")

    @abc.abstractmethod
    def query(self, context: "Context") -> typing.Any:
        """
        Returns a new query object that the filters, sorts and the pagination
        strategy subsequently mutate.
        """
        ...  # pragma: nocover

    @abc.abstractmethod
    def results(self, query: typing.Any, context: "Context") -> typing.Iterable[typing.Any]:
        ...  # pragma: nocover


class Countable(_Capability):
    _methods = ("count",)

    @abc.abstractmethod
    def count(self, query: typing.Any, context: "Context") -> typing.Optional[int]:
        ...  # pragma: nocover


class Paginatable(_Capability):
    _methods = ("paginate",)

    @abc.abstractmethod
    def paginate(
        self, query: typing.Any, offset: int, limit: int, context: "Context"
    ) -> None:
        ...  # pragma: nocover


class Creatable(_Capability):
    _methods = ("new_model", "create")

    @abc.abstractmethod
    def new_model(self, context: "Context") -> typing.Any:
        ...  # pragma: nocover

    @abc.abstractmethod
    def create(self, model: typing.Any, context: "Context") -> typing.Any:
        """
        Persists a model populated from the request document and returns the model
        that is to be rendered in the response.
        """
        ...  # pragma: nocover


class Updatable(_Capability):
    _methods = ("update",)

    @abc.abstractmethod
    def update(self, model: typing.Any, context: "Context") -> typing.Any:
        ...  # pragma: nocover


class Deletable(_Capability):
    _methods = ("delete",)

    @abc.abstractmethod
    def delete(self, model: typing.Any, context: "Context") -> None:
        ...  # pragma: nocover


class BooleanFilterable(_Capability):
    """
    Resources implementing this interface support the ``or`` and ``not`` combinators
    of the filter expressions.
    """

    _methods = ("sub_query", "combine")

    @abc.abstractmethod
    def sub_query(self, query: typing.Any, context: "Context") -> typing.Any:
        """
        Returns an empty query object of the same kind as ``query``, to which the filters
        of a single branch are applied.
        """
        ...  # pragma: nocover

    @abc.abstractmethod
    def combine(
        self,
        query: typing.Any,
        operator: str,
        sub_queries: typing.Sequence[typing.Any],
        context: "Context",
    ) -> None:
        """
        Folds the conditions accumulated in ``sub_queries`` back into ``query``.

        :param str operator: either ``"or"`` or ``"not"``.
        """
        ...  # pragma: nocover


class Capability(enum.Enum):
    FIND = "find"
    LIST = "list"
    COUNT = "count"
    PAGINATE = "paginate"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    BOOLEAN_FILTER = "boolean_filter"

    @property
    def interface(self) -> type:
        return _interfaces[self]


_interfaces: typing.Dict[Capability, type] = {
    Capability.FIND: Findable,
    Capability.LIST: Listable,
    Capability.COUNT: Countable,
    Capability.PAGINATE: Paginatable,
    Capability.CREATE: Creatable,
    Capability.UPDATE: Updatable,
    Capability.DELETE: Deletable,
    Capability.BOOLEAN_FILTER: BooleanFilterable,
}


def capabilities_of(resource: typing.Any) -> typing.FrozenSet[Capability]:
    return frozenset(c for c in Capability if isinstance(resource, c.interface))


class Resource(metaclass=abc.ABCMeta):
    """
    The base class for resource definitions.

    Subclasses set :py:attr:`type` and override :py:meth:`fields`, :py:meth:`endpoints`
    and friends. The definition is shared by every request and must not keep
    per-request state.
    """

    type: str
    model: typing.Optional[type] = None

    def endpoints(self) -> typing.Sequence["Endpoint"]:
        return ()

    def fields(self) -> typing.Sequence["Field"]:
        return ()

    def filters(self) -> typing.Sequence["Filter"]:
        return ()

    def sorts(self) -> typing.Sequence["Sort"]:
        return ()

    def meta(self) -> typing.Sequence["Meta"]:
        return ()

    def get_id(self, model: typing.Any, context: "Context") -> str:
        if isinstance(model, collections.abc.Mapping):
            return str(model["id"])
        return str(model.id)

    def get_value(self, model: typing.Any, field: "Field", context: "Context") -> typing.Any:
        name = field.property_name or field.name
        if isinstance(model, collections.abc.Mapping):
            return model.get(name)
        return getattr(model, name, None)

    def set_value(
        self, model: typing.Any, field: "Field", value: typing.Any, context: "Context"
    ) -> None:
        name = field.property_name or field.name
        if isinstance(model, collections.abc.MutableMapping):
            model[name] = value
        else:
            setattr(model, name, value)

    def accepts(self, model: typing.Any, context: "Context") -> bool:
        """
        Tells if ``model`` is represented by this resource.  This is consulted when
        a polymorphic relationship is serialized.
        """
        if self.model is None:
            return True
        return isinstance(model, self.model)

    def __repr__(self):
        return f"<{self.__class__.__name__} type={getattr(self, 'type', None)!r}>"
