import typing

import sqlalchemy as sa  # type: ignore


class SQLAlchemyQuery:
    """
    The query object handed to filters, sorts and the pagination strategy.

    SQLAlchemy statements are immutable, so this accumulates the clauses and turns
    them into a ``SELECT`` statement at the end.
    """

    entity: typing.Any
    clauses: typing.List[typing.Any]
    order_by: typing.List[typing.Any]
    offset: typing.Optional[int] = None
    limit: typing.Optional[int] = None

    def where(self, clause: typing.Any) -> None:
        self.clauses.append(clause)

    def order(self, clause: typing.Any) -> None:
        self.order_by.append(clause)

    def condition(self) -> typing.Optional[typing.Any]:
        if not self.clauses:
            return None
        if len(self.clauses) == 1:
            return self.clauses[0]
        return sa.and_(*self.clauses)

    def statement(self) -> sa.sql.Select:
        stmt = sa.select(self.entity)
        condition = self.condition()
        if condition is not None:
            stmt = stmt.where(condition)
        if self.order_by:
            stmt = stmt.order_by(*self.order_by)
        if self.offset:
            stmt = stmt.offset(self.offset)
        if self.limit is not None:
            stmt = stmt.limit(self.limit)
        return stmt

    def count_statement(self) -> sa.sql.Select:
        stmt = sa.select(sa.func.count()).select_from(self.entity)
        condition = self.condition()
        if condition is not None:
            stmt = stmt.where(condition)
        return stmt

    def __init__(self, entity: typing.Any):
        self.entity = entity
        self.clauses = []
        self.order_by = []
