import collections.abc
import decimal
import operator
import typing

from ...exceptions import BadRequestError
from ...schema.filter import Filter
from ...schema.sort import DESC, Sort
from .query import SQLAlchemyQuery

if typing.TYPE_CHECKING:
    from ...context import Context  # noqa: F401

OPERATORS: typing.Dict[str, typing.Callable[[typing.Any, typing.Any], typing.Any]] = {
    "eq": operator.eq,
    "ne": operator.ne,
    "lt": operator.lt,
    "lte": operator.le,
    "gt": operator.gt,
    "gte": operator.ge,
    "like": lambda c, v: c.like(v),
}

_truthy = frozenset(["1", "true", "yes", "on"])
_falsy = frozenset(["0", "false", "no", "off"])


def _column(context: "Context", name: str) -> typing.Any:
    resource = context.resource
    assert resource is not None and resource.model is not None
    return getattr(resource.model, name)


def coerce_value(column: typing.Any, value: typing.Any, parameter: str) -> typing.Any:
    """
    Converts a value taken from the query string to the Python type of ``column``.
    Only numeric and boolean columns are converted.
    """
    if not isinstance(value, str):
        return value
    try:
        python_type = column.type.python_type
    except (AttributeError, NotImplementedError):
        return value
    if python_type is bool:
        if value.lower() in _truthy:
            return True
        if value.lower() in _falsy:
            return False
    elif python_type in (int, float, decimal.Decimal):
        try:
            return python_type(value)
        except (ValueError, decimal.InvalidOperation):
            pass
    else:
        return value
    raise BadRequestError(f"Invalid value for {parameter}: {value}", parameter="filter")


class Where(Filter):
    """
    Filters on a column of the model.  The value may be

    * a scalar: ``filter[name]=foo``
    * a comma-separated or bracketed list: ``filter[id]=1,2`` or ``filter[id][]=1``
    * an operator-keyed mapping: ``filter[age][gte]=18``
    """

    column: typing.Optional[str]

    def _clause(self, column: typing.Any, value: typing.Any) -> typing.Any:
        parameter = f"filter[{self.name}]"
        if isinstance(value, collections.abc.Mapping):
            clauses = []
            for op, operand in value.items():
                fn = OPERATORS.get(op)
                if fn is None:
                    raise BadRequestError(f"Invalid filter operator: {op}", parameter="filter")
                clauses.append(fn(column, coerce_value(column, operand, parameter)))
            return clauses
        if isinstance(value, str) and "," in value:
            value = value.split(",")
        if isinstance(value, (list, tuple)):
            return [column.in_([coerce_value(column, v, parameter) for v in value])]
        return [column == coerce_value(column, value, parameter)]

    def apply(self, query: SQLAlchemyQuery, value: typing.Any, context: "Context") -> None:
        column = _column(context, self.column or self.name)
        for clause in self._clause(column, value):
            query.where(clause)

    def __init__(self, name: str, column: typing.Optional[str] = None):
        super().__init__(name)
        self.column = column


class SortColumn(Sort):
    column: typing.Optional[str]

    def apply(self, query: SQLAlchemyQuery, direction: str, context: "Context") -> None:
        column = _column(context, self.column or self.name)
        query.order(column.desc() if direction == DESC else column.asc())

    def __init__(self, name: str, column: typing.Optional[str] = None):
        super().__init__(name)
        self.column = column
