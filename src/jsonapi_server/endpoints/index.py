import typing

from ..exceptions import BadRequestError
from ..filtering import apply_filters, parse_sort_string
from ..http import Response
from ..pagination import OffsetPagination, Pagination
from ..resource import Capability, Countable, Listable
from ..serializer import Serializer
from ..utils import assert_not_none
from .base import Endpoint, Route

if typing.TYPE_CHECKING:
    from ..context import Context  # noqa: F401


class Index(Endpoint):
    """
    ``GET /{type}``: lists the resources matching the filters, in the requested order,
    one page at a time.
    """

    route = Route.COLLECTION
    method = "GET"
    required_capabilities = frozenset([Capability.LIST])

    _default_sort: typing.Optional[str] = None
    _pagination: typing.Optional[typing.Callable[["Context"], Pagination]] = None

    def capabilities(self) -> typing.FrozenSet[Capability]:
        if self._pagination is not None:
            return self.required_capabilities | {Capability.PAGINATE}
        return self.required_capabilities

    def default_sort(self, sort: typing.Optional[str]) -> "Index":
        self._default_sort = sort
        return self

    def paginate(self, default_limit: int = 20, max_limit: int = 50) -> "Index":
        self._pagination = lambda context: OffsetPagination(context, default_limit, max_limit)
        return self

    def _apply_sorts(self, query: typing.Any, context: "Context") -> None:
        resource = assert_not_none(context.resource)
        sort = context.query_param("sort", self._default_sort)
        if not sort:
            return
        sorts = {s.name: s for s in resource.sorts() if s.is_visible(context)}
        for name, direction in parse_sort_string(sort):
            sort_ = sorts.get(name)
            if sort_ is None:
                raise BadRequestError(f"Invalid sort: {name}", parameter="sort")
            sort_.apply(query, direction, context)

    def _apply_filters(self, query: typing.Any, context: "Context") -> None:
        resource = assert_not_none(context.resource)
        filters = context.query_param("filter")
        if filters is None:
            return
        try:
            apply_filters(query, filters, resource, context)
        except BadRequestError as e:
            if e.source is not None:
                raise
            raise e.with_source(parameter="filter")

    def _handle(self, context: "Context", segments: typing.Sequence[str]) -> Response:
        resource = context.resource
        assert isinstance(resource, Listable)
        self._assert_visible(context)

        include = self._include(context)
        query = resource.query(context)
        context = context.with_query(query)

        self._apply_sorts(query, context)
        self._apply_filters(query, context)

        total: typing.Optional[int] = None
        if isinstance(resource, Countable):
            total = resource.count(query, context)

        pagination = self._pagination(context) if self._pagination is not None else None
        if pagination is not None:
            pagination.apply(query)

        models = list(resource.results(query, context))

        serializer = Serializer(context)
        for model in models:
            serializer.add_primary(resource, model, include)
        data, included = serializer.serialize()

        document = self._document(context)
        document.set_collection(data)
        document.set_included(included)
        page: typing.Dict[str, typing.Any] = {}
        if total is not None:
            page["total"] = total
        if pagination is not None:
            page.update(pagination.meta())
            document.merge_links(pagination.links(len(models), total))
        if page:
            document.meta["page"] = page
        return self._respond(context, document)
