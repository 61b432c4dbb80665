import typing

if typing.TYPE_CHECKING:
    from ..context import Context  # noqa: F401
    from .meta import Meta  # noqa: F401

Condition = typing.Callable[[typing.Any, "Context"], bool]

T = typing.TypeVar("T", bound="HasVisibility")
U = typing.TypeVar("U", bound="HasMeta")


class HasVisibility:
    _visible: typing.Union[bool, Condition] = True

    def visible(self: T, condition: typing.Optional[Condition] = None) -> T:
        """
        Makes the object visible, or visible only when ``condition(model, context)``
        holds.
        """
        self._visible = True if condition is None else condition
        return self

    def hidden(self: T, condition: typing.Optional[Condition] = None) -> T:
        if condition is None:
            self._visible = False
        else:
            self._visible = lambda model, context: not condition(model, context)
        return self

    def is_visible(self, context: "Context") -> bool:
        if callable(self._visible):
            return bool(self._visible(context.model, context))
        return self._visible


class HasMeta:
    _meta: typing.List["Meta"]

    def meta(self: U, *entries: "Meta") -> U:
        self._meta = list(getattr(self, "_meta", ())) + list(entries)
        return self

    def meta_values(self, context: "Context") -> typing.Dict[str, typing.Any]:
        return {
            entry.name: entry.value(context)
            for entry in getattr(self, "_meta", ())
            if entry.is_visible(context)
        }
