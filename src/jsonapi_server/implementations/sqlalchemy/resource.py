import typing

import sqlalchemy as sa  # type: ignore
from sqlalchemy import orm  # type: ignore

from ...resource import Resource
from .query import SQLAlchemyQuery

if typing.TYPE_CHECKING:
    from ...context import Context  # noqa: F401


class SQLAlchemyResource(Resource):
    """
    A resource backed by a mapped class.

    Subclasses set :py:attr:`type` and :py:attr:`model`.  Changes are flushed but never
    committed; the transaction belongs to the caller of the API.
    """

    session: orm.Session

    @property
    def mapper(self) -> orm.Mapper:
        return sa.inspect(self.model)

    def get_id(self, model: typing.Any, context: "Context") -> str:
        return "-".join(str(v) for v in self.mapper.primary_key_from_instance(model))

    def _coerce_id(self, id: str) -> typing.Any:
        columns = self.mapper.primary_key
        values = id.split("-") if len(columns) > 1 else [id]
        if len(values) != len(columns):
            return None
        retval = []
        for column, value in zip(columns, values):
            try:
                python_type = column.type.python_type
            except NotImplementedError:
                retval.append(value)
                continue
            try:
                retval.append(python_type(value))
            except (TypeError, ValueError):
                return None
        return tuple(retval) if len(retval) > 1 else retval[0]

    def find(self, id: str, context: "Context") -> typing.Any:
        ident = self._coerce_id(id)
        if ident is None:
            return None
        return self.session.get(self.model, ident)

    def query(self, context: "Context") -> SQLAlchemyQuery:
        return SQLAlchemyQuery(self.model)

    def results(self, query: SQLAlchemyQuery, context: "Context") -> typing.List[typing.Any]:
        return list(self.session.scalars(query.statement()))

    def count(self, query: SQLAlchemyQuery, context: "Context") -> int:
        return self.session.scalar(query.count_statement())

    def paginate(self, query: SQLAlchemyQuery, offset: int, limit: int, context: "Context"):
        query.offset = offset
        query.limit = limit

    def sub_query(self, query: SQLAlchemyQuery, context: "Context") -> SQLAlchemyQuery:
        return SQLAlchemyQuery(query.entity)

    def combine(
        self,
        query: SQLAlchemyQuery,
        operator: str,
        sub_queries: typing.Sequence[SQLAlchemyQuery],
        context: "Context",
    ) -> None:
        conditions = [
            sa.true() if c is None else c for c in (q.condition() for q in sub_queries)
        ]
        if operator == "or":
            query.where(sa.or_(*conditions))
        elif operator == "not":
            query.where(sa.not_(sa.and_(*conditions)))
        else:
            raise ValueError(f"unknown operator: {operator}")

    def new_model(self, context: "Context") -> typing.Any:
        return self.model()

    def create(self, model: typing.Any, context: "Context") -> typing.Any:
        self.session.add(model)
        self.session.flush()
        return model

    def update(self, model: typing.Any, context: "Context") -> typing.Any:
        self.session.flush()
        return model

    def delete(self, model: typing.Any, context: "Context") -> None:
        self.session.delete(model)
        self.session.flush()

    def __init__(self, session: orm.Session):
        self.session = session
