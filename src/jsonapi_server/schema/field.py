"""
Field definitions.

Fields are declared with a fluent interface and evaluated against a
:py:class:`jsonapi_server.context.Context` that carries the model being read or written:

.. code-block:: python

   Attribute("name").writable().required(),
   Attribute("email").visible(lambda model, context: model is context.request_user),
   ToOne("author").type("users").includable(),
   ToMany("comments").includable().with_linkage(),
"""
import typing

from .concerns import Condition, HasMeta, HasVisibility

if typing.TYPE_CHECKING:
    from ..context import Context  # noqa: F401
    from ..resource import Resource  # noqa: F401

Getter = typing.Callable[[typing.Any, "Context"], typing.Any]
Transformer = typing.Callable[[typing.Any, "Context"], typing.Any]
Setter = typing.Callable[[typing.Any, typing.Any, "Context"], None]
Default = typing.Callable[["Context"], typing.Any]
Validator = typing.Callable[[typing.Any, typing.Callable[[str], None], "Context"], None]

F = typing.TypeVar("F", bound="Field")


class Field(HasVisibility, HasMeta):
    #: the member of the resource object the field is rendered into
    location: typing.ClassVar[typing.Optional[str]] = None

    name: str
    property_name: typing.Optional[str] = None
    _getter: typing.Optional[Getter] = None
    _serializer: typing.Optional[Transformer] = None
    _deserializer: typing.Optional[Transformer] = None
    _setter: typing.Optional[Setter] = None
    _writable: typing.Union[bool, Condition] = False
    _writable_on_create_only: bool = False
    _required: bool = False
    _nullable: bool = False
    _default: typing.Optional[Default] = None
    _validators: typing.List[Validator]

    # defined ahead of property() below, which shadows the builtin in this class body
    @property
    def is_required(self) -> bool:
        return self._required

    @property
    def is_nullable(self) -> bool:
        return self._nullable

    @property
    def has_default(self) -> bool:
        return self._default is not None

    def property(self: F, name: str) -> F:
        """
        Reads and writes the value from and to the model's ``name`` instead of the
        field name.
        """
        self.property_name = name
        return self

    def get(self: F, fn: Getter) -> F:
        self._getter = fn
        return self

    def serialize(self: F, fn: Transformer) -> F:
        self._serializer = fn
        return self

    def deserialize(self: F, fn: Transformer) -> F:
        self._deserializer = fn
        return self

    def set(self: F, fn: Setter) -> F:
        self._setter = fn
        return self

    def writable(self: F, condition: typing.Optional[Condition] = None) -> F:
        self._writable = True if condition is None else condition
        return self

    def writable_on_create(self: F) -> F:
        if self._writable is False:
            self._writable = True
        self._writable_on_create_only = True
        return self

    def readonly(self: F) -> F:
        self._writable = False
        self._writable_on_create_only = False
        return self

    def required(self: F, flag: bool = True) -> F:
        self._required = flag
        return self

    def nullable(self: F, flag: bool = True) -> F:
        self._nullable = flag
        return self

    def default(self: F, fn: Default) -> F:
        self._default = fn
        return self

    def validate(self: F, fn: Validator) -> F:
        self._validators.append(fn)
        return self

    def get_value(self, resource: "Resource", context: "Context") -> typing.Any:
        if self._getter is not None:
            return self._getter(context.model, context)
        return resource.get_value(context.model, self, context)

    def serialize_value(self, value: typing.Any, context: "Context") -> typing.Any:
        if self._serializer is not None:
            return self._serializer(value, context)
        return value

    def deserialize_value(self, value: typing.Any, context: "Context") -> typing.Any:
        if self._deserializer is not None:
            return self._deserializer(value, context)
        return value

    def default_value(self, context: "Context") -> typing.Any:
        assert self._default is not None
        return self._default(context)

    def set_value(
        self, resource: "Resource", model: typing.Any, value: typing.Any, context: "Context"
    ) -> None:
        if self._setter is not None:
            self._setter(model, value, context)
        else:
            resource.set_value(model, self, value, context)

    def is_writable(self, context: "Context", creating: bool = False) -> bool:
        if self._writable_on_create_only and not creating:
            return False
        if callable(self._writable):
            return bool(self._writable(context.model, context))
        return self._writable

    def validate_value(self, value: typing.Any, context: "Context") -> typing.List[str]:
        """
        Runs the validators and returns the failure messages they reported.
        """
        failures: typing.List[str] = []
        if value is None:
            if not self._nullable:
                failures.append(f"{self.name} must not be null")
            return failures
        for validator in self._validators:
            validator(value, failures.append, context)
        return failures

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.name!r}>"

    def __init__(self, name: str):
        self.name = name
        self._validators = []


class Attribute(Field):
    location = "attributes"


class Relationship(Field):
    location = "relationships"
    many: typing.ClassVar[bool] = False

    types: typing.Tuple[str, ...] = ()
    is_includable: bool = False
    has_linkage: bool = False

    def type(self: F, *types: str) -> F:
        """
        Constrains the related resources to the given types.  A relationship with
        more than one type is polymorphic; without any, every registered resource is
        a candidate.
        """
        typing.cast(Relationship, self).types = tuple(types)
        return self

    def includable(self: F, flag: bool = True) -> F:
        typing.cast(Relationship, self).is_includable = flag
        return self

    def with_linkage(self: F, flag: bool = True) -> F:
        typing.cast(Relationship, self).has_linkage = flag
        return self


class ToOne(Relationship):
    many = False


class ToMany(Relationship):
    many = True


class Id(Field):
    """
    Declares how a client-generated id is accepted on creation.  Resources without a
    writable :py:class:`Id` reject documents carrying an ``id`` on creation.
    """

    def __init__(self, name: str = "id"):
        super().__init__(name)
