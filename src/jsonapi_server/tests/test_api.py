import logging

import pytest

from ..api import JsonApi
from ..endpoints import Index, Show, Update
from ..exceptions import InvalidDeclarationError
from ..extension import Extension
from ..http import json_api_response
from ..schema import Attribute, Meta, ToOne
from .testing import MockResource, Model, ReadOnlyResource, request


def upper(value, context):
    return value.upper()


class EchoExtension(Extension):
    @property
    def uri(self):
        return "https://example.com/ext/echo"

    def handle(self, context):
        if context.path != "echo":
            return None
        return json_api_response({"meta": {"echo": context.body}})


class TestFieldValues:
    @pytest.fixture
    def users(self):
        return MockResource(
            "users",
            models=[Model(id="1", raw="raw", getter="raw", serialized="raw", both="raw")],
            endpoints=[Show()],
            fields=[
                Attribute("raw"),
                Attribute("getter").get(lambda model, context: "getter"),
                Attribute("serialized").serialize(upper),
                Attribute("both").get(lambda model, context: "getter").serialize(upper),
            ],
        )

    @pytest.fixture
    def api(self, users):
        api = JsonApi()
        api.resource(users)
        return api

    def test_values(self, api):
        response = api(request("GET", "/users/1"))
        assert response.status == 200
        assert response.header("content-type") == "application/vnd.api+json"
        assert response.header("Vary") == "Accept"
        assert response.document["data"] == {
            "type": "users",
            "id": "1",
            "attributes": {
                "raw": "raw",
                "getter": "getter",
                "serialized": "RAW",
                "both": "GETTER",
            },
            "links": {"self": "/users/1"},
        }
        assert response.document["jsonapi"] == {"version": "1.1"}

    def test_sparse_fieldset(self, api):
        response = api(request("GET", "/users/1?fields[users]=raw,both"))
        assert response.document["data"]["attributes"] == {"raw": "raw", "both": "GETTER"}

    def test_property(self):
        api = JsonApi()
        api.resource(
            MockResource(
                "users",
                models=[Model(id="1", full_name="Alice")],
                endpoints=[Show()],
                fields=[Attribute("name").property("full_name")],
            )
        )
        response = api(request("GET", "/users/1"))
        assert response.document["data"]["attributes"] == {"name": "Alice"}


class TestVisibility:
    @pytest.fixture
    def api(self):
        api = JsonApi()
        api.resource(
            MockResource(
                "users",
                models=[Model(id="1", name="alice", secret="s"), Model(id="2", name="bob")],
                endpoints=[Show().visible(lambda model, context: model.id == "1")],
                fields=[
                    Attribute("name"),
                    Attribute("secret").hidden(),
                    Attribute("nickname").visible(lambda model, context: model.id == "2"),
                ],
                meta=[
                    Meta("length", lambda model, context: len(model.name)),
                    Meta("hidden", lambda model, context: True).hidden(),
                ],
            )
        )
        return api

    def test_visible_fields_and_meta(self, api):
        response = api(request("GET", "/users/1"))
        assert response.status == 200
        assert response.document["data"]["attributes"] == {"name": "alice"}
        assert response.document["data"]["meta"] == {"length": 5}

    def test_forbidden(self, api):
        response = api(request("GET", "/users/2"))
        assert response.status == 403
        assert response.document["errors"][0]["status"] == "403"


class TestDispatch:
    @pytest.fixture
    def users(self):
        return MockResource(
            "users",
            models=[Model(id="1", name="alice")],
            endpoints=[Index(), Show(), Update()],
            fields=[Attribute("name")],
        )

    @pytest.fixture
    def api(self, users):
        api = JsonApi()
        api.resource(users)
        api.extension(EchoExtension())
        return api

    def test_unknown_resource(self, api):
        response = api(request("GET", "/posts/1"))
        assert response.status == 404
        assert response.document["errors"][0]["detail"] == 'no resource known as "posts"'

    def test_unknown_model(self, api):
        response = api(request("GET", "/users/2"))
        assert response.status == 404

    @pytest.mark.parametrize("path", ["/", "/users/1/extra", "/users//1"])
    def test_unmatched_path(self, api, path):
        assert api(request("GET", path)).status == 404

    def test_method_not_allowed(self, api):
        response = api(request("DELETE", "/users/1"))
        assert response.status == 405
        # the last endpoint matching the path wins
        assert response.document["errors"][0]["meta"] == {"allow": "PATCH"}
        assert response.header("Vary") == "Accept"

    @pytest.mark.parametrize("name", ["foo", "includes"])
    def test_unrecognized_query_parameter(self, api, name):
        response = api(request("GET", f"/users/1?{name}=1"))
        assert response.status == 400
        assert response.document["errors"][0]["source"] == {"parameter": name}

    @pytest.mark.parametrize("name", ["foo_bar", "fooBar", "foo-bar"])
    def test_implementation_specific_query_parameter(self, api, name):
        assert api(request("GET", f"/users/1?{name}=1")).status == 200

    @pytest.mark.parametrize(
        "content_type",
        [
            "text/plain",
            "application/vnd.api+json; charset=utf-8",
            'application/vnd.api+json; ext="https://example.com/ext/unknown"',
        ],
    )
    def test_unsupported_media_type(self, api, content_type):
        response = api(
            request(
                "PATCH",
                "/users/1",
                body={"data": {"type": "users", "id": "1"}},
                headers={"Content-Type": content_type},
            )
        )
        assert response.status == 415

    @pytest.mark.parametrize(
        "accept,status",
        [
            ("text/html", 406),
            ('application/vnd.api+json; ext="https://example.com/ext/unknown"', 406),
            ("application/vnd.api+json; foo=bar", 406),
            ("application/vnd.api+json;q=0, text/html", 406),
            ("text/html, application/vnd.api+json", 200),
            ("*/*", 200),
            ("application/*", 406),
            ('application/vnd.api+json; ext="https://example.com/ext/echo"', 200),
        ],
    )
    def test_accept(self, api, accept, status):
        response = api(request("GET", "/users/1", headers={"Accept": accept}))
        assert response.status == status

    def test_extension(self, api):
        media_type = 'application/vnd.api+json; ext="https://example.com/ext/echo"'
        response = api(
            request(
                "POST",
                "/echo",
                body={"atomic:operations": []},
                headers={"Content-Type": media_type, "Accept": media_type},
            )
        )
        assert response.status == 200
        assert response.header("Content-Type") == media_type
        assert response.document == {"meta": {"echo": {"atomic:operations": []}}}

    def test_extension_not_accepted(self, api):
        response = api(
            request(
                "POST",
                "/echo",
                body={},
                headers={
                    "Content-Type": 'application/vnd.api+json; ext="https://example.com/ext/echo"',
                    "Accept": "application/vnd.api+json",
                },
            )
        )
        # the extension is inactive so the path is routed as a resource type
        assert response.status == 404

    def test_extension_without_accept(self, api):
        response = api(
            request(
                "POST",
                "/echo",
                body={},
                headers={
                    "Content-Type": 'application/vnd.api+json; ext="https://example.com/ext/echo"'
                },
            )
        )
        assert response.status == 404
        assert response.header("Content-Type") == "application/vnd.api+json"

    def test_unhandled_exception(self, caplog):
        def explode(model, context):
            raise RuntimeError("boom")

        api = JsonApi()
        api.resource(
            MockResource(
                "users",
                models=[Model(id="1")],
                endpoints=[Show()],
                fields=[Attribute("name").get(explode)],
            )
        )
        with caplog.at_level(logging.ERROR, logger="jsonapi_server.api"):
            response = api(request("GET", "/users/1"))
        assert response.status == 500
        assert response.document["errors"] == [
            {"status": "500", "title": "Internal Server Error"}
        ]
        assert "boom" not in response.json()
        assert "unhandled exception" in caplog.text

    def test_base_path(self, users):
        api = JsonApi("https://example.com/api/")
        api.resource(users)
        response = api(request("GET", "/api/users/1"))
        assert response.status == 200
        assert response.document["data"]["links"] == {"self": "https://example.com/api/users/1"}
        assert api(request("GET", "/users/1")).status == 404


class TestRegistry:
    def test_duplicate_type(self):
        api = JsonApi()
        api.resource(MockResource("users"))
        with pytest.raises(InvalidDeclarationError):
            api.resource(MockResource("users"))

    def test_duplicate_field(self):
        api = JsonApi()
        with pytest.raises(InvalidDeclarationError):
            api.resource(MockResource("users", fields=[Attribute("name"), Attribute("name")]))

    def test_missing_capability(self):
        api = JsonApi()
        api.resource(ReadOnlyResource("users", endpoints=[Show()]))
        with pytest.raises(InvalidDeclarationError, match="list"):
            api.resource(ReadOnlyResource("posts", endpoints=[Index()]))

    def test_frozen(self):
        api = JsonApi()
        api.resource(MockResource("users", endpoints=[Show()]))
        api(request("GET", "/users/1"))
        with pytest.raises(InvalidDeclarationError):
            api.resource(MockResource("posts"))
        with pytest.raises(InvalidDeclarationError):
            api.extension(EchoExtension())

    def test_unknown_relationship_type(self):
        api = JsonApi()
        api.resource(MockResource("users", fields=[ToOne("team").type("teams")]))
        with pytest.raises(InvalidDeclarationError):
            api.handle(request("GET", "/users"))

    def test_resources(self):
        api = JsonApi()
        users = api.resource(MockResource("users"))
        assert dict(api.resources) == {"users": users}
        assert api.get_resource("users") is users
        with pytest.raises(TypeError):
            api.resources["posts"] = users  # type: ignore
