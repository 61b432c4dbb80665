import typing

from .concerns import HasVisibility

if typing.TYPE_CHECKING:
    from ..context import Context  # noqa: F401


class Meta(HasVisibility):
    """
    A ``meta`` entry computed from the model being rendered.

    .. code-block:: python

       Meta("last_seen", lambda model, context: model.last_seen).visible(is_admin)
    """

    name: str
    fn: typing.Callable[[typing.Any, "Context"], typing.Any]

    def value(self, context: "Context") -> typing.Any:
        return self.fn(context.model, context)

    def __init__(self, name: str, fn: typing.Callable[[typing.Any, "Context"], typing.Any]):
        self.name = name
        self.fn = fn
