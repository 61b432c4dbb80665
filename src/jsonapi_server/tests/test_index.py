import pytest

from ..api import JsonApi
from ..endpoints import Index
from ..exceptions import BadRequestError
from ..filtering import parse_sort_string
from ..schema import Attribute, CustomFilter, Meta
from .testing import MockResource, Model, by, equals, request


def ids(response):
    return [r["id"] for r in response.document["data"]]


def failing_filter(query, value, context):
    raise BadRequestError("value must be a number")


class TestParseSortString:
    def test_parse(self):
        assert parse_sort_string("-created, name,,") == [("created", "desc"), ("name", "asc")]

    def test_list(self):
        assert parse_sort_string(["a", "-b"]) == [("a", "asc"), ("b", "desc")]


class TestIndex:
    @pytest.fixture
    def models(self):
        return [
            Model(id="1", name="alice", age=30),
            Model(id="2", name="bob", age=25),
            Model(id="3", name="carol", age=35),
            Model(id="4", name="dave", age=25),
        ]

    @pytest.fixture
    def index(self):
        return Index()

    @pytest.fixture
    def users(self, models, index):
        return MockResource(
            "users",
            models=models,
            endpoints=[index],
            fields=[Attribute("name"), Attribute("age")],
            filters=[
                equals("name"),
                equals("age"),
                equals("secret").hidden(),
                CustomFilter("failing", failing_filter),
            ],
            sorts=[by("name"), by("age"), by("secret").hidden()],
        )

    @pytest.fixture
    def api(self, users):
        api = JsonApi()
        api.resource(users)
        return api

    def test_list(self, api):
        response = api(request("GET", "/users"))
        assert response.status == 200
        assert ids(response) == ["1", "2", "3", "4"]
        assert response.document["data"][0] == {
            "type": "users",
            "id": "1",
            "attributes": {"name": "alice", "age": 30},
        }
        assert response.document["meta"] == {"page": {"total": 4}}

    @pytest.mark.parametrize(
        "sort,expected",
        [
            ("name", ["1", "2", "3", "4"]),
            ("-name", ["4", "3", "2", "1"]),
            ("age", ["2", "4", "1", "3"]),
            ("-age", ["3", "1", "2", "4"]),
            ("age,-name", ["4", "2", "1", "3"]),
        ],
    )
    def test_sort(self, api, sort, expected):
        assert ids(api(request("GET", f"/users?sort={sort}"))) == expected

    @pytest.mark.parametrize("sort", ["nope", "name,-nope", "secret"])
    def test_invalid_sort(self, api, sort):
        response = api(request("GET", f"/users?sort={sort}"))
        assert response.status == 400
        assert response.document["errors"][0]["source"] == {"parameter": "sort"}

    def test_default_sort(self, api, index):
        index.default_sort("-age")
        assert ids(api(request("GET", "/users"))) == ["3", "1", "2", "4"]
        assert ids(api(request("GET", "/users?sort=name"))) == ["1", "2", "3", "4"]

    @pytest.mark.parametrize(
        "qs,expected",
        [
            ("filter[name]=alice", ["1"]),
            ("filter[age]=25", ["2", "4"]),
            ("filter[name]=alice,carol", ["1", "3"]),
            ("filter[name]=alice&filter[age]=25", []),
            ("filter[and][0][age]=25&filter[and][1][name]=dave", ["4"]),
            ("filter[or][0][name]=alice&filter[or][1][age]=35", ["1", "3"]),
            ("filter[not][age]=25", ["1", "3"]),
            ("filter[not][or][0][age]=25&filter[not][or][1][name]=alice", ["3"]),
            ("filter[age]=25&filter[or][0][name]=dave&filter[or][1][name]=carol", ["4"]),
        ],
    )
    def test_filter(self, api, qs, expected):
        response = api(request("GET", f"/users?{qs}"))
        assert response.status == 200
        assert ids(response) == expected
        assert response.document["meta"]["page"]["total"] == len(expected)

    @pytest.mark.parametrize(
        "qs",
        [
            "filter[nope]=1",
            "filter[secret]=1",
            "filter=alice",
            "filter[or]=alice",
            "filter[or][x][name]=alice",
            "filter[failing]=1",
        ],
    )
    def test_invalid_filter(self, api, qs):
        response = api(request("GET", f"/users?{qs}"))
        assert response.status == 400
        assert response.document["errors"][0]["source"] == {"parameter": "filter"}

    def test_unknown_filter_detail(self, api):
        response = api(request("GET", "/users?filter[nope]=1"))
        assert response.document["errors"][0]["detail"] == "Invalid filter: nope"

    def test_combinator_unsupported(self, models):
        class Resource(MockResource):
            sub_query = None
            combine = None

        api = JsonApi()
        api.resource(
            Resource("users", models=models, endpoints=[Index()], filters=[equals("name")])
        )
        response = api(request("GET", "/users?filter[or][0][name]=alice"))
        assert response.status == 400
        assert response.document["errors"][0]["source"] == {"parameter": "filter"}
        response = api(request("GET", "/users?filter[and][0][name]=alice"))
        assert ids(response) == ["1"]

    def test_forbidden(self, api, index):
        index.hidden()
        assert api(request("GET", "/users")).status == 403

    def test_meta(self, api, index):
        index.meta(Meta("generator", lambda model, context: "test"))
        response = api(request("GET", "/users"))
        assert response.document["meta"] == {"generator": "test", "page": {"total": 4}}


class TestPagination:
    @pytest.fixture
    def api(self):
        api = JsonApi()
        api.resource(
            MockResource(
                "users",
                models=[Model(id=str(i), name=f"user{i}") for i in range(1, 6)],
                endpoints=[Index().paginate(default_limit=2, max_limit=3)],
                fields=[Attribute("name")],
                filters=[equals("name")],
            )
        )
        return api

    def test_first_page(self, api):
        response = api(request("GET", "/users"))
        assert response.status == 200
        assert ids(response) == ["1", "2"]
        assert response.document["meta"] == {"page": {"total": 5, "offset": 0, "limit": 2}}
        assert response.document["links"] == {
            "first": "/users",
            "next": "/users?page[offset]=2",
            "last": "/users?page[offset]=4",
        }

    def test_middle_page(self, api):
        response = api(request("GET", "/users?page[offset]=2"))
        assert ids(response) == ["3", "4"]
        assert response.document["links"] == {
            "first": "/users",
            "prev": "/users",
            "next": "/users?page[offset]=4",
            "last": "/users?page[offset]=4",
        }

    def test_last_page(self, api):
        response = api(request("GET", "/users?page[offset]=4"))
        assert ids(response) == ["5"]
        assert "next" not in response.document["links"]
        assert response.document["links"]["prev"] == "/users?page[offset]=2"

    def test_limit_is_clamped(self, api):
        response = api(request("GET", "/users?page[limit]=10"))
        assert ids(response) == ["1", "2", "3"]
        assert response.document["meta"]["page"]["limit"] == 3

    def test_links_keep_query(self, api):
        response = api(request("GET", "/users?filter[name]=user1,user2,user3&page[limit]=1"))
        assert ids(response) == ["1"]
        assert response.document["links"]["next"] == (
            "/users?filter[name]=user1%2Cuser2%2Cuser3&page[limit]=1&page[offset]=1"
        )

    @pytest.mark.parametrize(
        "qs,parameter",
        [
            ("page[offset]=-1", "page[offset]"),
            ("page[offset]=x", "page[offset]"),
            ("page[limit]=0", "page[limit]"),
            ("page=1", "page"),
        ],
    )
    def test_invalid(self, api, qs, parameter):
        response = api(request("GET", f"/users?{qs}"))
        assert response.status == 400
        assert response.document["errors"][0]["source"] == {"parameter": parameter}

    def test_requires_capability(self):
        from ..exceptions import InvalidDeclarationError
        from ..resource import Capability

        class Resource(MockResource):
            paginate = None

        assert Capability.PAGINATE in Index().paginate().capabilities()
        with pytest.raises(InvalidDeclarationError):
            JsonApi().resource(Resource("users", endpoints=[Index().paginate()]))
