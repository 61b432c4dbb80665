"""
Transport-independent request and response values.

A transport adapter turns whatever it receives into a :py:class:`Request`, hands it to
:py:meth:`jsonapi_server.api.JsonApi.handle` and writes the returned :py:class:`Response`
back out. Neither object is ever mutated; the ``with_*`` methods return copies.
"""

import collections.abc
import dataclasses
import json
import re
import typing
import urllib.parse

from werkzeug.http import parse_list_header, parse_options_header

from .document.types import JSONObject

MEDIA_TYPE = "application/vnd.api+json"

Headers = typing.Tuple[typing.Tuple[str, str], ...]

MediaType = typing.Tuple[str, typing.Dict[str, str]]


def _normalize_headers(
    headers: typing.Union[None, typing.Mapping[str, str], typing.Iterable[typing.Tuple[str, str]]]
) -> Headers:
    if headers is None:
        return ()
    if isinstance(headers, collections.abc.Mapping):
        return tuple((str(k), str(v)) for k, v in headers.items())
    return tuple((str(k), str(v)) for k, v in headers)


def _header_line(headers: Headers, name: str) -> str:
    name = name.lower()
    return ", ".join(v for k, v in headers if k.lower() == name)


@dataclasses.dataclass(frozen=True)
class Request:
    """
    An inbound request.

    :param str method: the HTTP method.
    :param str path: the request path (without query string).
    :param headers: header name/value pairs, looked up case-insensitively.
    :param query: the query parameters; ``filter``, ``page`` and ``fields`` are nested mappings.
    :param body: the decoded JSON body, if any.
    """

    method: str
    path: str
    headers: Headers = ()
    query: typing.Mapping[str, typing.Any] = dataclasses.field(default_factory=dict)
    body: typing.Optional[JSONObject] = None

    def header(self, name: str) -> str:
        return _header_line(self.headers, name)

    def with_query(self, query: typing.Mapping[str, typing.Any]) -> "Request":
        return dataclasses.replace(self, query=query)

    @classmethod
    def from_url(
        cls,
        method: str,
        url: str,
        headers: typing.Union[
            None, typing.Mapping[str, str], typing.Iterable[typing.Tuple[str, str]]
        ] = None,
        body: typing.Optional[JSONObject] = None,
    ) -> "Request":
        parsed = urllib.parse.urlsplit(url)
        return cls(
            method=method.upper(),
            path=parsed.path,
            headers=_normalize_headers(headers),
            query=parse_query_string(parsed.query),
            body=body,
        )

    def __post_init__(self):
        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(self, "headers", _normalize_headers(self.headers))


@dataclasses.dataclass(frozen=True)
class Response:
    status: int
    headers: Headers = ()
    document: typing.Optional[JSONObject] = None

    def header(self, name: str) -> str:
        return _header_line(self.headers, name)

    def with_header(self, name: str, value: str) -> "Response":
        lname = name.lower()
        return dataclasses.replace(
            self,
            headers=tuple((k, v) for k, v in self.headers if k.lower() != lname)
            + ((name, value),),
        )

    def with_added_header(self, name: str, value: str) -> "Response":
        return dataclasses.replace(self, headers=self.headers + ((name, value),))

    def json(self) -> str:
        return json.dumps(self.document) if self.document is not None else ""

    def __post_init__(self):
        object.__setattr__(self, "headers", _normalize_headers(self.headers))


def json_api_response(
    document: typing.Optional[JSONObject],
    status: int = 200,
    headers: typing.Optional[typing.Mapping[str, str]] = None,
) -> Response:
    resp_headers: typing.List[typing.Tuple[str, str]] = []
    if document is not None:
        resp_headers.append(("Content-Type", MEDIA_TYPE))
    if headers is not None:
        resp_headers.extend(headers.items())
    return Response(status=status, headers=tuple(resp_headers), document=document)


def parse_media_type(value: str) -> MediaType:
    name, params = parse_options_header(value)
    return name.strip().lower(), {k.lower(): v for k, v in params.items()}


def parse_accept(value: str) -> typing.List[MediaType]:
    """
    Parses an ``Accept`` header into media types ordered by preference.
    Entries with a quality of zero or an unparsable quality are dropped.
    """
    entries: typing.List[typing.Tuple[float, int, MediaType]] = []
    for i, item in enumerate(parse_list_header(value)):
        name, params = parse_media_type(item)
        if not name:
            continue
        q = 1.0
        if "q" in params:
            try:
                q = float(params.pop("q"))
            except ValueError:
                continue
        if q <= 0:
            continue
        entries.append((q, i, (name, params)))
    entries.sort(key=lambda e: (-e[0], e[1]))
    return [e[2] for e in entries]


_bracket_key_re = re.compile(r"\[([^\[\]]*)\]")


def _split_bracket_key(key: str) -> typing.List[str]:
    head, bracket, rest = key.partition("[")
    if not bracket:
        return [key]
    tail = "[" + rest
    parts = _bracket_key_re.findall(tail)
    if "".join(f"[{p}]" for p in parts) != tail:
        return [key]
    return [head] + parts


def parse_query_string(qs: str) -> typing.Dict[str, typing.Any]:
    """
    Decodes a query string into a nested mapping the way PHP and Rack do:
    ``filter[name]=x`` becomes ``{"filter": {"name": "x"}}`` and ``a[]=1&a[]=2``
    becomes ``{"a": ["1", "2"]}``.
    """
    result: typing.Dict[str, typing.Any] = {}
    for key, value in urllib.parse.parse_qsl(qs, keep_blank_values=True):
        path = _split_bracket_key(key)
        target: typing.Any = result
        for i, component in enumerate(path):
            last = i == len(path) - 1
            if component == "" and i > 0:
                if not isinstance(target, list):
                    break
                # list append syntax
                if last:
                    target.append(value)
                    break
                target.append({})
                target = target[-1]
                continue
            if not isinstance(target, dict):
                # conflicting shapes such as a[]=1&a[x]=2, the first one wins
                break
            existing = target.get(component)
            if last:
                if not isinstance(existing, (dict, list)):
                    target[component] = value
                break
            if existing is None:
                existing = target[component] = [] if path[i + 1] == "" else {}
            target = existing
    return result


def build_query_string(query: typing.Mapping[str, typing.Any]) -> str:
    """
    The inverse of :py:func:`parse_query_string`.
    """
    pairs: typing.List[typing.Tuple[str, str]] = []

    def _walk(prefix: str, value: typing.Any) -> None:
        if isinstance(value, collections.abc.Mapping):
            for k, v in value.items():
                _walk(f"{prefix}[{k}]", v)
        elif isinstance(value, (list, tuple)):
            for v in value:
                _walk(f"{prefix}[]", v)
        else:
            pairs.append((prefix, "" if value is None else str(value)))

    for k, v in query.items():
        _walk(k, v)
    return urllib.parse.urlencode(pairs, safe="[]")
