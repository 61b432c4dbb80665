"""
The entry point of the library.

Synopsis
--------

.. code-block:: python

   from jsonapi_server.api import JsonApi
   from jsonapi_server.http import Request

   api = JsonApi("/api")
   api.resource(UsersResource())

   response = api(Request.from_url("GET", "/api/users/1?include=posts"))

:py:meth:`JsonApi.handle` raises the errors it encounters, while calling the
:py:class:`JsonApi` instance converts them into error documents.
"""
import datetime
import logging
import re
import types
import typing
import urllib.parse

from .context import Context
from .document.models import DocumentRepr
from .document.renderer import ReprRenderer
from .document.types import JSONObject
from .endpoints.show import Show
from .exceptions import (
    BadRequestError,
    ErrorProvider,
    InternalServerError,
    InvalidDeclarationError,
    JSONAPIError,
    MethodNotAllowedError,
    NotAcceptableError,
    NotFoundError,
    ResourceNotFoundError,
    UnsupportedMediaTypeError,
)
from .extension import Extension
from .http import MEDIA_TYPE, Request, Response, json_api_response, parse_accept, parse_media_type
from .resource import Resource, capabilities_of
from .schema.field import Relationship
from .utils import english_enumerate

logger = logging.getLogger(__name__)

#: top-level query parameters defined by JSON:API
RECOGNIZED_PARAMETERS = frozenset(["include", "fields", "filter", "page", "sort"])

# implementation-specific parameters must contain at least one non a-z character
_reserved_parameter_re = re.compile(r"[a-z]+")

_media_type_parameters = frozenset(["ext", "profile"])


class JsonApi:
    MEDIA_TYPE: typing.ClassVar[str] = MEDIA_TYPE
    VERSION: typing.ClassVar[str] = "1.1"

    base_path: str
    _base_path_path: str
    _resources: typing.Dict[str, Resource]
    _extensions: typing.Dict[str, Extension]
    _renderer: ReprRenderer
    _frozen: bool = False

    def _assert_not_frozen(self) -> None:
        if self._frozen:
            raise InvalidDeclarationError(
                "no resource or extension can be registered after the first request"
            )

    def extension(self, extension: Extension) -> Extension:
        self._assert_not_frozen()
        if extension.uri in self._extensions:
            raise InvalidDeclarationError(f'extension "{extension.uri}" is already registered')
        self._extensions[extension.uri] = extension
        return extension

    def resource(self, resource: Resource) -> Resource:
        """
        Registers a resource definition.

        :raises InvalidDeclarationError: if the type is already registered, the resource
            declares a field twice, or one of its endpoints needs a capability the
            resource does not have.
        """
        self._assert_not_frozen()
        if resource.type in self._resources:
            raise InvalidDeclarationError(f'resource "{resource.type}" is already registered')
        names: typing.Set[str] = set()
        for field in resource.fields():
            if field.name in names:
                raise InvalidDeclarationError(
                    f'resource "{resource.type}" declares field "{field.name}" more than once'
                )
            names.add(field.name)
        capabilities = capabilities_of(resource)
        for endpoint in resource.endpoints():
            missing = endpoint.capabilities() - capabilities
            if missing:
                raise InvalidDeclarationError(
                    f'{endpoint!r} of resource "{resource.type}" requires '
                    + english_enumerate(sorted(c.value for c in missing), conj=" and ")
                )
        self._resources[resource.type] = resource
        return resource

    @property
    def resources(self) -> typing.Mapping[str, Resource]:
        return types.MappingProxyType(self._resources)

    @property
    def extensions(self) -> typing.Mapping[str, Extension]:
        return types.MappingProxyType(self._extensions)

    def get_resource(self, type: str) -> Resource:
        resource = self._resources.get(type)
        if resource is None:
            raise ResourceNotFoundError(type)
        return resource

    def related_resources(self, field: Relationship) -> typing.List[Resource]:
        """
        Returns the resources that can stand at the other end of ``field``.
        """
        if field.types:
            return [self._resources[t] for t in field.types if t in self._resources]
        return list(self._resources.values())

    def freeze(self) -> None:
        if self._frozen:
            return
        for resource in self._resources.values():
            for field in resource.fields():
                if not isinstance(field, Relationship):
                    continue
                for type_ in field.types:
                    if type_ not in self._resources:
                        raise InvalidDeclarationError(
                            f'relationship "{resource.type}.{field.name}" refers to '
                            f'unknown resource "{type_}"'
                        )
        self._frozen = True

    def is_under_base_path(self, path: str) -> bool:
        return (
            not self._base_path_path
            or path == self._base_path_path
            or path.startswith(self._base_path_path + "/")
        )

    def strip_base_path(self, path: str) -> str:
        if self._base_path_path and self.is_under_base_path(path):
            path = path[len(self._base_path_path) :]
        return path.strip("/")

    def url(self, path: str) -> str:
        return f"{self.base_path}/{path.lstrip('/')}"

    def resource_link(self, resource: Resource, id: str) -> typing.Optional[str]:
        if not any(isinstance(e, Show) for e in resource.endpoints()):
            return None
        return self.url(f"{resource.type}/{urllib.parse.quote(id, safe='')}")

    def render(self, document: DocumentRepr) -> JSONObject:
        return self._renderer(document)

    def _validate_query_parameters(self, request: Request) -> None:
        for name in request.query:
            if name in RECOGNIZED_PARAMETERS:
                continue
            if _reserved_parameter_re.fullmatch(name):
                raise BadRequestError(f"Invalid query parameter: {name}", parameter=name)

    def _negotiate(self, request: Request) -> typing.List[Extension]:
        """
        Checks ``Content-Type`` and ``Accept`` and returns the extensions that both
        of them name.
        """
        registered = set(self._extensions)

        requested: typing.Set[str] = set()
        content_type = request.header("Content-Type")
        if content_type:
            name, params = parse_media_type(content_type)
            if name != MEDIA_TYPE or set(params) - _media_type_parameters:
                raise UnsupportedMediaTypeError(
                    f"Content-Type must be {MEDIA_TYPE}", header="Content-Type"
                )
            requested = set(params.get("ext", "").split())
            if requested - registered:
                raise UnsupportedMediaTypeError(
                    "unsupported extension: " + english_enumerate(sorted(requested - registered)),
                    header="Content-Type",
                )

        acceptable: typing.Optional[typing.Set[str]] = None
        accept = request.header("Accept")
        if accept:
            for name, params in parse_accept(accept):
                if name == "*/*":
                    acceptable = set()
                    break
                if name != MEDIA_TYPE or set(params) - _media_type_parameters:
                    continue
                exts = set(params.get("ext", "").split())
                if exts - registered:
                    continue
                acceptable = exts
                break
            if acceptable is None:
                raise NotAcceptableError(f"{MEDIA_TYPE} is not acceptable", header="Accept")
        else:
            acceptable = set()

        return [self._extensions[uri] for uri in sorted(requested & acceptable)]

    def _dispatch(self, context: Context) -> Response:
        segments = context.segments
        if not segments or not self.is_under_base_path(context.request.path):
            raise NotFoundError()
        resource = self.get_resource(segments[0])
        logger.debug("resolved resource %r for %s", resource, context.request.path)
        context = context.with_resource(resource)

        last_error: typing.Optional[MethodNotAllowedError] = None
        for endpoint in resource.endpoints():
            try:
                response = endpoint.handle(context)
            except MethodNotAllowedError as e:
                last_error = e
                continue
            if response is not None:
                return response
        if last_error is not None:
            raise last_error
        raise NotFoundError()

    def handle(self, request: Request) -> Response:
        """
        Processes ``request``.

        :raises JSONAPIError: for any condition that is to be reported to the client.
        """
        self.freeze()
        self._validate_query_parameters(request)
        context = Context(api=self, request=request)

        response: typing.Optional[Response] = None
        for extension in self._negotiate(request):
            response = extension.handle(context)
            if response is not None:
                logger.debug("extension %s handled %s", extension.uri, request.path)
                response = response.with_header(
                    "Content-Type", f'{MEDIA_TYPE}; ext="{extension.uri}"'
                )
                break
        if response is None:
            response = self._dispatch(context)
        return response.with_added_header("Vary", "Accept")

    def error(self, exc: BaseException) -> Response:
        """
        Converts an exception into an error document.  Exceptions that do not describe
        themselves as JSON:API errors are logged and reported as a bare 500.
        """
        if not isinstance(exc, ErrorProvider):
            logger.exception("unhandled exception", exc_info=exc)
            exc = InternalServerError()
        elif isinstance(exc, JSONAPIError) and exc.status.startswith("5"):
            logger.error("%s", exc, exc_info=exc)
        else:
            logger.warning("%s", exc)
        document = DocumentRepr(
            jsonapi={"version": self.VERSION}, errors=list(exc.json_api_errors())
        )
        return json_api_response(self.render(document), status=int(exc.json_api_status()))

    def __call__(self, request: Request) -> Response:
        try:
            return self.handle(request)
        except Exception as e:
            return self.error(e).with_added_header("Vary", "Accept")

    def __init__(
        self,
        base_path: str = "",
        *,
        render_decimal_as_str: bool = True,
        assume_naive_timezone_as: typing.Optional[datetime.tzinfo] = None,
    ):
        self.base_path = base_path.rstrip("/")
        self._base_path_path = urllib.parse.urlsplit(self.base_path).path.rstrip("/")
        self._resources = {}
        self._extensions = {}
        self._renderer = ReprRenderer(
            render_decimal_as_str=render_decimal_as_str,
            assume_naive_timezone_as=assume_naive_timezone_as,
        )
