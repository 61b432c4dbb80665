import abc
import collections.abc
import typing

from .document.models import LinksRepr
from .exceptions import BadRequestError
from .http import build_query_string
from .resource import Paginatable

if typing.TYPE_CHECKING:
    from .context import Context  # noqa: F401


class Pagination(metaclass=abc.ABCMeta):
    """
    A pagination strategy.  An instance is created for each request.
    """

    @abc.abstractmethod
    def apply(self, query: typing.Any) -> None:
        ...  # pragma: nocover

    @abc.abstractmethod
    def meta(self) -> typing.Dict[str, typing.Any]:
        """
        Returns the members merged into ``meta.page`` of the document.
        """
        ...  # pragma: nocover

    @abc.abstractmethod
    def links(self, count: int, total: typing.Optional[int]) -> LinksRepr:
        """
        :param int count: the number of results on the current page.
        :param Optional[int] total: the total number of results, if known.
        """
        ...  # pragma: nocover


class OffsetPagination(Pagination):
    context: "Context"
    default_limit: int
    max_limit: int
    offset: int
    limit: int

    def _page(self) -> typing.Mapping[str, typing.Any]:
        page = self.context.query_param("page", {})
        if not isinstance(page, collections.abc.Mapping):
            raise BadRequestError("page must be a mapping", parameter="page")
        return page

    def _parse(self, name: str, default: int, minimum: int) -> int:
        raw = self._page().get(name)
        if raw is None or raw == "":
            return default
        try:
            value = int(raw)
        except (TypeError, ValueError):
            value = minimum - 1
        if value < minimum:
            raise BadRequestError(
                f"page[{name}] must be an integer not less than {minimum}",
                parameter=f"page[{name}]",
            )
        return value

    def apply(self, query: typing.Any) -> None:
        resource = self.context.resource
        assert isinstance(resource, Paginatable)
        resource.paginate(query, self.offset, self.limit, self.context)

    def meta(self) -> typing.Dict[str, typing.Any]:
        return {"offset": self.offset, "limit": self.limit}

    def _url(self, offset: int) -> str:
        query = dict(self.context.request.query)
        page = dict(self._page())
        if offset > 0:
            page["offset"] = offset
        else:
            page.pop("offset", None)
        if page:
            query["page"] = page
        else:
            query.pop("page", None)
        url = self.context.api.url(self.context.path)
        qs = build_query_string(query)
        return f"{url}?{qs}" if qs else url

    def links(self, count: int, total: typing.Optional[int]) -> LinksRepr:
        links = LinksRepr(first=self._url(0))
        if self.offset > 0:
            links.prev = self._url(max(self.offset - self.limit, 0))
        if total is not None:
            if self.offset + self.limit < total:
                links.next = self._url(self.offset + self.limit)
            links.last = self._url(max((total - 1) // self.limit * self.limit, 0))
        elif count >= self.limit:
            links.next = self._url(self.offset + self.limit)
        return links

    def __init__(self, context: "Context", default_limit: int = 20, max_limit: int = 50):
        self.context = context
        self.default_limit = default_limit
        self.max_limit = max_limit
        self.offset = self._parse("offset", 0, 0)
        self.limit = min(self._parse("limit", default_limit, 1), max_limit)
