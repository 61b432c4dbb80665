import pytest

from ..api import JsonApi
from ..context import Context
from ..endpoints import Index, Show
from ..exceptions import BadRequestError
from ..include import parse_include, validate_include
from ..schema import Attribute, ToMany, ToOne
from .testing import MockResource, Model, request


def identifiers(resources):
    return [(r["type"], r["id"]) for r in resources]


class TestParseInclude:
    def test_string(self):
        assert parse_include("author,comments.author,comments.post,,") == {
            "author": {},
            "comments": {"author": {}, "post": {}},
        }

    def test_list(self):
        assert parse_include(["a.b", "a.b.c", "d"]) == {"a": {"b": {"c": {}}}, "d": {}}

    def test_empty(self):
        assert parse_include(None) == {}
        assert parse_include("") == {}


class TestBlog:
    @pytest.fixture
    def models(self):
        alice = Model(id="1", name="alice")
        bob = Model(id="2", name="bob")
        post = Model(id="1", title="hello", author=alice)
        post.comments = [
            Model(id="1", body="first", author=alice, post=post),
            Model(id="2", body="second", author=bob, post=post),
        ]
        alice.posts = [post]
        bob.posts = []
        return {"users": [alice, bob], "posts": [post], "comments": post.comments}

    @pytest.fixture
    def api(self, models):
        api = JsonApi()
        api.resource(
            MockResource(
                "users",
                models=models["users"],
                endpoints=[Show()],
                fields=[
                    Attribute("name"),
                    ToMany("posts").type("posts").includable(),
                ],
            )
        )
        api.resource(
            MockResource(
                "posts",
                models=models["posts"],
                endpoints=[Index(), Show()],
                fields=[
                    Attribute("title"),
                    ToOne("author").type("users").includable(),
                    ToMany("comments").type("comments").includable(),
                ],
            )
        )
        api.resource(
            MockResource(
                "comments",
                models=models["comments"],
                fields=[
                    Attribute("body"),
                    ToOne("author").type("users").includable(),
                    ToOne("post").type("posts").includable(),
                    ToOne("secret").type("users").includable().hidden(),
                ],
            )
        )
        return api

    def test_no_include(self, api):
        response = api(request("GET", "/posts/1"))
        assert response.status == 200
        assert "relationships" not in response.document["data"]
        assert "included" not in response.document

    def test_include(self, api):
        response = api(request("GET", "/posts/1?include=author,comments.author"))
        assert response.status == 200
        document = response.document
        assert document["data"]["relationships"] == {
            "author": {"data": {"type": "users", "id": "1"}},
            "comments": {
                "data": [
                    {"type": "comments", "id": "1"},
                    {"type": "comments", "id": "2"},
                ]
            },
        }
        # breadth-first discovery order, alice only once
        assert identifiers(document["included"]) == [
            ("users", "1"),
            ("comments", "1"),
            ("comments", "2"),
            ("users", "2"),
        ]
        assert document["included"][1]["relationships"] == {
            "author": {"data": {"type": "users", "id": "1"}},
        }
        assert "relationships" not in document["included"][0]
        assert "links" not in document["included"][1]
        assert document["included"][0]["links"] == {"self": "/users/1"}

    def test_same_resource_through_two_paths(self, api):
        response = api(request("GET", "/posts/1?include=author,comments.author.posts"))
        assert response.status == 200
        included = response.document["included"]
        assert identifiers(included).count(("users", "1")) == 1
        alice = next(r for r in included if (r["type"], r["id"]) == ("users", "1"))
        # expanded for the nested path even though it was first reached without one
        assert alice["relationships"] == {"posts": {"data": [{"type": "posts", "id": "1"}]}}
        bob = next(r for r in included if (r["type"], r["id"]) == ("users", "2"))
        assert bob["relationships"] == {"posts": {"data": []}}
        # the primary resource never repeats in included
        assert ("posts", "1") not in identifiers(included)

    def test_cycle(self, api):
        response = api(request("GET", "/users/1?include=posts.author.posts.comments.post"))
        assert response.status == 200
        assert identifiers(response.document["included"]) == [
            ("posts", "1"),
            ("comments", "1"),
            ("comments", "2"),
        ]

    def test_include_collection(self, api):
        response = api(request("GET", "/posts?include=author"))
        assert response.status == 200
        assert identifiers(response.document["included"]) == [("users", "1")]

    def test_sparse_fieldset_does_not_prevent_inclusion(self, api):
        response = api(request("GET", "/posts/1?include=author&fields[posts]=title"))
        assert response.status == 200
        assert "relationships" not in response.document["data"]
        assert identifiers(response.document["included"]) == [("users", "1")]

    @pytest.mark.parametrize(
        "include,path",
        [
            ("nope", "nope"),
            ("title", "title"),
            ("comments.nope", "comments.nope"),
            ("comments.secret", "comments.secret"),
            ("comments.author.posts.nope", "comments.author.posts.nope"),
        ],
    )
    def test_invalid(self, api, include, path):
        response = api(request("GET", f"/posts/1?include={include}"))
        assert response.status == 400
        error = response.document["errors"][0]
        assert error["source"] == {"parameter": "include"}
        assert error["detail"] == f"Invalid include [{path}]"


class Photo(Model):
    pass


class Video(Model):
    pass


class TestPolymorphic:
    @pytest.fixture
    def api(self):
        album = Model(id="1", name="holidays")
        feed = Model(
            id="1",
            items=[Photo(id="1", album=album), Video(id="1"), Photo(id="2", album=None)],
        )
        api = JsonApi()
        api.resource(
            MockResource(
                "feeds",
                models=[feed],
                endpoints=[Show()],
                fields=[ToMany("items").type("photos", "videos").includable()],
            )
        )
        api.resource(
            MockResource(
                "photos",
                model=Photo,
                fields=[ToOne("album").type("albums").includable()],
            )
        )
        api.resource(MockResource("videos", model=Video))
        api.resource(MockResource("albums", fields=[Attribute("name")]))
        return api

    def test_include(self, api):
        response = api(request("GET", "/feeds/1?include=items.album"))
        assert response.status == 200
        document = response.document
        assert document["data"]["relationships"]["items"]["data"] == [
            {"type": "photos", "id": "1"},
            {"type": "videos", "id": "1"},
            {"type": "photos", "id": "2"},
        ]
        assert identifiers(document["included"]) == [
            ("photos", "1"),
            ("videos", "1"),
            ("photos", "2"),
            ("albums", "1"),
        ]
        assert document["included"][2]["relationships"] == {"album": {"data": None}}

    def test_invalid(self, api):
        response = api(request("GET", "/feeds/1?include=items.nope"))
        assert response.status == 400
        assert response.document["errors"][0]["detail"] == "Invalid include [items.nope]"

    def test_validate_include(self, api):
        context = Context(api=api, request=request("GET", "/feeds/1"))
        feeds = api.get_resource("feeds")
        validate_include(context, [feeds], {"items": {"album": {}}})
        with pytest.raises(BadRequestError):
            validate_include(context, [feeds], {"items": {"album": {"nope": {}}}})

    @pytest.fixture
    def comments_api(self):
        alice = Model(id="1", posts=[Model(id="1", title="hello")])
        acme = Model(id="1", name="acme")
        api = JsonApi()
        api.resource(
            MockResource(
                "comments",
                models=[
                    Model(id="1", subject=Photo(id="1", owner=alice)),
                    Model(id="2", subject=Video(id="1", owner=acme)),
                ],
                endpoints=[Show()],
                fields=[ToOne("subject").type("photos", "videos").includable()],
            )
        )
        api.resource(
            MockResource(
                "photos", model=Photo, fields=[ToOne("owner").type("users").includable()]
            )
        )
        api.resource(
            MockResource("videos", model=Video, fields=[ToOne("owner").type("orgs").includable()])
        )
        api.resource(MockResource("users", fields=[ToMany("posts").type("posts").includable()]))
        api.resource(MockResource("orgs", fields=[Attribute("name")]))
        api.resource(MockResource("posts", fields=[Attribute("title")]))
        return api

    def test_path_followed_by_one_candidate(self, comments_api):
        response = comments_api(request("GET", "/comments/1?include=subject.owner.posts"))
        assert response.status == 200
        assert identifiers(response.document["included"]) == [
            ("photos", "1"),
            ("users", "1"),
            ("posts", "1"),
        ]
        response = comments_api(request("GET", "/comments/2?include=subject.owner.posts"))
        assert response.status == 200
        assert identifiers(response.document["included"]) == [("videos", "1"), ("orgs", "1")]

    def test_path_followed_by_no_candidate(self, comments_api):
        response = comments_api(request("GET", "/comments/1?include=subject.owner.nope"))
        assert response.status == 400
        assert response.document["errors"][0]["detail"] == "Invalid include [subject.owner.nope]"
