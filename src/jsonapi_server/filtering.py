"""
The filter expression evaluator and the ``sort`` parameter parser.

A filter expression is a mapping whose keys are either the name of a filter declared
by the resource or one of the combinators below:

``and``
    a list of expressions, all of which apply to the same query.
``or``
    a list of expressions, each evaluated against its own sub-query.
``not``
    a single expression evaluated against a sub-query.

Lists may also be given as mappings keyed by index, which is what
``filter[or][0][name]=x`` decodes to.
"""
import collections.abc
import typing

from .exceptions import BadRequestError
from .resource import BooleanFilterable
from .schema.filter import Filter
from .schema.sort import ASC, DESC

if typing.TYPE_CHECKING:
    from .context import Context  # noqa: F401
    from .resource import Resource  # noqa: F401

COMBINATORS = ("and", "or", "not")


def _as_list(value: typing.Any) -> typing.List[typing.Any]:
    if isinstance(value, collections.abc.Mapping):
        try:
            keys = sorted(value, key=int)
        except ValueError:
            raise BadRequestError("Invalid filter expression", parameter="filter")
        return [value[k] for k in keys]
    if isinstance(value, (list, tuple)):
        return list(value)
    raise BadRequestError("Invalid filter expression", parameter="filter")


def find_filter(
    context: "Context", resource: "Resource", name: str
) -> typing.Optional[Filter]:
    for filter_ in resource.filters():
        if filter_.name == name and filter_.is_visible(context):
            return filter_
    return None


def _sub_query(
    query: typing.Any,
    operator: str,
    expressions: typing.Sequence[typing.Any],
    resource: "Resource",
    context: "Context",
) -> None:
    if not isinstance(resource, BooleanFilterable):
        raise BadRequestError(
            f'Filter combinator "{operator}" is not supported', parameter="filter"
        )
    sub_queries = []
    for expression in expressions:
        sub_query = resource.sub_query(query, context)
        apply_filters(sub_query, expression, resource, context)
        sub_queries.append(sub_query)
    resource.combine(query, operator, sub_queries, context)


def apply_filters(
    query: typing.Any,
    filters: typing.Any,
    resource: "Resource",
    context: "Context",
) -> None:
    """
    Applies a filter expression to ``query``.

    :raises BadRequestError: if the expression is malformed or refers to an unknown filter.
    """
    if not isinstance(filters, collections.abc.Mapping):
        raise BadRequestError("filter must be a mapping", parameter="filter")
    for key, value in filters.items():
        if key == "and":
            for expression in _as_list(value):
                apply_filters(query, expression, resource, context)
        elif key == "or":
            _sub_query(query, "or", _as_list(value), resource, context)
        elif key == "not":
            _sub_query(query, "not", [value], resource, context)
        else:
            filter_ = find_filter(context, resource, key)
            if filter_ is None:
                raise BadRequestError(f"Invalid filter: {key}", parameter="filter")
            filter_.apply(query, value, context)


def parse_sort_string(
    sort: typing.Union[str, typing.Iterable[str]]
) -> typing.List[typing.Tuple[str, str]]:
    """
    Parses ``"-created,name"`` into ``[("created", "desc"), ("name", "asc")]``.
    """
    tokens = sort.split(",") if isinstance(sort, str) else sort
    retval: typing.List[typing.Tuple[str, str]] = []
    for token in tokens:
        token = token.strip()
        if not token:
            continue
        if token.startswith("-"):
            retval.append((token[1:], DESC))
        else:
            retval.append((token, ASC))
    return retval
