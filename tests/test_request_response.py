"""
Request path decomposition and inputs; Response state and template variables.
"""

import pytest

from temma.request import Request
from temma.response import Response

from conftest import make_receive, make_request, make_scope


# ============================================================================
# Request
# ============================================================================


class TestRequestPath:

    def test_controller_action_params(self):
        request = make_request("GET", "/user/show/12/extra")
        assert request.controller == "user"
        assert request.action == "show"
        assert request.params == ["12", "extra"]

    def test_root_path(self):
        request = make_request("GET", "/")
        assert request.controller is None
        assert request.action is None
        assert request.params == []

    def test_empty_segments_are_dropped(self):
        request = make_request("GET", "//user///list/")
        assert (request.controller, request.action) == ("user", "list")

    def test_segments_are_decoded(self):
        request = make_request("GET", "/tag/show/caf%C3%A9")
        assert request.params == ["café"]

    def test_set_path_info_rederives(self):
        request = make_request("GET", "/user/show/12")
        request.set_path_info("article/list")
        assert request.path_info == "/article/list"
        assert (request.controller, request.action, request.params) == ("article", "list", [])

    def test_setters(self):
        request = make_request("GET", "/user/show/12")
        request.set_controller("")
        request.set_action("edit")
        request.set_params(None)
        assert request.controller is None
        assert request.action == "edit"
        assert request.params == []

    def test_site_path_from_root_path(self):
        request = make_request("GET", "/user", root_path="/app")
        assert request.site_path == "/app"
        assert request.path_info == "/user"

    def test_method(self):
        request = make_request("post", "/")
        assert request.method == "POST"
        request.set_method("delete")
        assert request.method == "DELETE"

    def test_state_starts_empty(self):
        assert make_request().state == {}

    def test_state_lives_in_scope(self):
        scope = make_scope("GET", "/")
        request = Request(scope)
        request.state["loader"] = "L"
        assert scope["state"] == {"loader": "L"}


class TestRequestInputs:

    def test_query_params(self):
        request = make_request("GET", "/", query_string="a=1&b=&a=2")
        assert request.query_string == "a=1&b=&a=2"
        assert request.query_params == {"a": "2", "b": ""}

    def test_headers_case_insensitive(self):
        request = make_request("GET", "/", headers=[("X-Token", "abc")])
        assert request.header("x-token") == "abc"
        assert request.header("X-TOKEN") == "abc"
        assert request.header("missing", "d") == "d"

    def test_cookies(self):
        request = make_request("GET", "/", headers=[("cookie", "sid=42; theme=dark")])
        assert request.cookies == {"sid": "42", "theme": "dark"}

    def test_accepted_formats_sorted_by_quality(self):
        request = make_request(
            "GET", "/",
            headers=[("accept", "text/html;q=0.8, application/json, */*;q=0.1")],
        )
        assert request.accepted_formats() == ["application/json", "text/html", "*/*"]

    @pytest.mark.asyncio
    async def test_body_is_read_once(self):
        request = Request(
            {"type": "http", "method": "POST", "path": "/"},
            make_receive(chunks=[b"he", b"llo"]),
        )
        assert await request.body() == b"hello"
        assert await request.body() == b"hello"

    @pytest.mark.asyncio
    async def test_json_and_form(self):
        request = Request.build("/", "POST", body=b'{"a": 1}')
        assert await request.json() == {"a": 1}
        request = Request.build("/", "POST", body=b"name=bob&age=3")
        assert await request.form() == {"name": "bob", "age": "3"}

    @pytest.mark.asyncio
    async def test_empty_json_body(self):
        assert await Request.build("/", "POST").json() is None

    def test_build(self):
        request = Request.build("/user/show/3", "get", query_string="x=1", headers={"Host": "example.org"})
        assert request.method == "GET"
        assert request.params == ["3"]
        assert request.query_params == {"x": "1"}
        assert request.header("host") == "example.org"


# ============================================================================
# Response
# ============================================================================


class TestResponse:

    def test_defaults(self):
        response = Response()
        assert response.http_code == 200
        assert response.http_error is None
        assert response.redirect_url is None
        assert response.view is None
        assert response.data == {}

    def test_redirection_codes(self):
        response = Response()
        response.set_redirection("/login")
        assert (response.redirect_url, response.redirect_code) == ("/login", 302)
        response.set_redirection("/home", permanent=True)
        assert (response.redirect_url, response.redirect_code) == ("/home", 301)
        response.set_redirection(None)
        assert response.redirect_url is None

    def test_template_variables(self):
        response = Response()
        response.set("name", "bob")
        assert response.has("name")
        assert response.get("name") == "bob"
        response.delete("name")
        assert not response.has("name")
        assert response.get("name") is None

    def test_get_with_default_stores_it(self):
        response = Response()
        trace = response.get("trace", [])
        trace.append("x")
        assert response.get("trace") == ["x"]

    def test_data_is_a_copy(self):
        response = Response()
        response.update({"a": 1})
        response.data["b"] = 2
        assert response.data == {"a": 1}

    def test_body_fragments_and_headers(self):
        response = Response()
        response.prepend("<!-- a -->")
        response.prepend("<!-- b -->")
        response.append("<!-- end -->")
        response.set_header("X-Frame-Options", "DENY")
        assert response.prepended == "<!-- a --><!-- b -->"
        assert response.appended == "<!-- end -->"
        assert response.headers == [("X-Frame-Options", "DENY")]
