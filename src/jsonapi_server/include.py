"""
Parsing and validation of the ``include`` query parameter.

``"author,comments.author"`` becomes the tree::

   {"author": {}, "comments": {"author": {}}}

Validation walks that tree rather than the relationship graph, so it terminates
even when the relationships are cyclic.
"""
import typing

from .exceptions import BadRequestError
from .schema.field import Relationship

if typing.TYPE_CHECKING:
    from .context import Context  # noqa: F401
    from .resource import Resource  # noqa: F401

IncludeTree = typing.Dict[str, "IncludeTree"]  # type: ignore


def parse_include(include: typing.Union[str, typing.Iterable[str], None]) -> IncludeTree:
    if include is None:
        return {}
    if isinstance(include, str):
        paths: typing.Iterable[str] = include.split(",")
    else:
        paths = include
    tree: IncludeTree = {}
    for path in paths:
        node = tree
        for name in path.strip().split("."):
            if not name:
                continue
            node = node.setdefault(name, {})
    return tree


def find_includable(
    context: "Context", resource: "Resource", name: str
) -> typing.Optional[Relationship]:
    field = context.fields(resource).get(name)
    if not isinstance(field, Relationship) or not field.is_includable:
        return None
    if not field.is_visible(context.with_resource(resource).with_field(field)):
        return None
    return field


def validate_include(
    context: "Context",
    resources: typing.Iterable["Resource"],
    tree: IncludeTree,
    path: str = "",
) -> None:
    """
    Checks every path of ``tree`` against the includable relationships of ``resources``.
    A name is accepted when at least one candidate declares it and can follow the rest
    of the path.

    :param resources: the candidate resources, more than one for polymorphic relationships.
    :param str path: the dotted prefix leading to ``tree``, for error reporting.
    :raises BadRequestError: if a path does not name an includable relationship.
    """
    resources = list(resources)
    for name, subtree in tree.items():
        fields = [
            field
            for field in (find_includable(context, resource, name) for resource in resources)
            if field is not None
        ]
        if not fields:
            raise BadRequestError(f"Invalid include [{path}{name}]", parameter="include")
        if not subtree:
            continue
        first_failure: typing.Optional[BadRequestError] = None
        for field in fields:
            try:
                validate_include(
                    context, context.api.related_resources(field), subtree, f"{path}{name}."
                )
            except BadRequestError as e:
                first_failure = first_failure or e
            else:
                break
        else:
            # no candidate can follow the rest of the path
            assert first_failure is not None
            raise first_failure
