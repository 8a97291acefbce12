"""
Dispatcher: the full request state machine, from loader creation to the
view, through plugins, controllers, redirections and reboots.
"""

import asyncio
import json

import pytest

from temma.config import Config
from temma.controller import ControllerNames
from temma.datasource import MemoryDatasource
from temma.faults import FrameworkFault, HttpFault, TooManyRebootsFault
from temma.flow import ExecStatus
from temma.framework import Framework
from temma.loader import Loader
from temma.request import Request
from temma.response import Response
from temma.routing import RouteTable

from conftest import dispatch, make_config, make_request
from sampleapp import controllers

P = "sampleapp.plugins."
ROUTER = "temma.plugins.router.Router"


def make_framework(application=None, **sections):
    return Framework(make_config(application, **sections))


def last_response(send) -> Response:
    return send.request.state["response"]


class TracingLoader(Loader):
    pass


# ============================================================================
# Core scenarios
# ============================================================================


class TestDispatchScenarios:

    @pytest.mark.asyncio
    async def test_route_to_typed_action(self):
        framework = make_framework(
            x_router={"GET:/users/[id:int]": "User::show($id)"},
            plugins={"_pre": [ROUTER]},
        )
        status, send = await dispatch(framework, "GET", "/users/42")
        assert status is ExecStatus.FORWARD
        assert send.status == 200
        assert send.headers["content-type"].startswith("application/json")
        body = json.loads(send.body)
        assert body["user"] == {"id": 42}
        assert body["trace"] == ["User.init", "User.show", "User.finalize"]

    @pytest.mark.asyncio
    async def test_route_plugins_spliced(self):
        framework = make_framework(
            x_router={"GET:/users/[id:int]": {"action": "User::show($id)", "_pre": [P + "P1"], "_post": [P + "P2"]}},
            plugins={"_pre": [ROUTER]},
        )
        _, send = await dispatch(framework, "GET", "/users/7")
        assert last_response(send).get("trace") == ["P1", "User.init", "User.show", "User.finalize", "P2"]

    @pytest.mark.asyncio
    async def test_unrouted_url_uses_path(self):
        framework = make_framework(
            x_router={"GET:/users/[id:int]": "User::show($id)"},
            plugins={"_pre": [ROUTER]},
        )
        _, send = await dispatch(framework, "GET", "/user/show/abc")
        assert last_response(send).get("user") == {"id": "abc"}

    @pytest.mark.asyncio
    async def test_default_controller(self):
        framework = make_framework({"defaultController": "Fallback"})
        status, send = await dispatch(framework, "GET", "/nowhere/show")
        assert status is ExecStatus.FORWARD
        assert send.status == 200
        assert last_response(send).get("fallback") == "show"

    @pytest.mark.asyncio
    async def test_unknown_controller_is_404(self):
        framework = make_framework()
        with pytest.raises(HttpFault) as info:
            await dispatch(framework, "GET", "/nowhere/show")
        assert info.value.status == 404

    @pytest.mark.asyncio
    async def test_plugin_redirect_skips_controller(self):
        framework = make_framework(plugins={
            "_pre": [P + "LoginRedirect", P + "P1"],
            "_post": [P + "PostOnly"],
        })
        status, send = await dispatch(framework, "GET", "/user/show/1")
        assert status is ExecStatus.FORWARD
        assert send.status == 302
        assert send.headers["location"] == "/login"
        assert send.body == b""
        assert last_response(send).get("trace") == ["LoginRedirect"]

    @pytest.mark.asyncio
    async def test_permanent_redirect(self):
        framework = make_framework(plugins={"_pre": [P + "LoginRedirect301"]})
        _, send = await dispatch(framework, "GET", "/user")
        assert send.status == 301
        assert send.headers["location"] == "/login"

    @pytest.mark.asyncio
    async def test_root_controller(self):
        framework = make_framework({"rootController": "Home"})
        _, send = await dispatch(framework, "GET", "/")
        assert json.loads(send.body)["page"] == "home"

    @pytest.mark.asyncio
    async def test_missing_action_is_404(self):
        framework = make_framework()
        with pytest.raises(HttpFault) as info:
            await dispatch(framework, "GET", "/article")
        assert info.value.status == 404


# ============================================================================
# Flow statuses
# ============================================================================


class TestFlow:

    @pytest.mark.asyncio
    async def test_plugin_quit(self):
        framework = make_framework(plugins={"_pre": [P + "Quitter"]})
        status, send = await dispatch(framework, "GET", "/user/show/1")
        assert status is ExecStatus.QUIT
        assert send.messages == []
        assert last_response(send).get("trace") == ["Quitter"]

    @pytest.mark.asyncio
    async def test_controller_quit(self):
        framework = make_framework(plugins={"_post": [P + "PostOnly"]})
        status, send = await dispatch(framework, "GET", "/user/quit")
        assert status is ExecStatus.QUIT
        assert send.messages == []
        assert last_response(send).get("trace") == ["User.init"]

    @pytest.mark.asyncio
    async def test_stop_continues_to_controller(self):
        framework = make_framework(plugins={"_pre": [P + "Stopper", P + "P1"]})
        _, send = await dispatch(framework, "GET", "/user/show/1")
        assert last_response(send).get("trace") == ["Stopper", "User.init", "User.show", "User.finalize"]

    @pytest.mark.asyncio
    async def test_pre_and_post_plugins(self):
        framework = make_framework(plugins={"_pre": [P + "Both"], "_post": [P + "Both"]})
        _, send = await dispatch(framework, "GET", "/user/show/1")
        assert last_response(send).get("trace") == [
            "Both.pre", "User.init", "User.show", "User.finalize", "Both.post",
        ]

    @pytest.mark.asyncio
    async def test_plugin_restart(self):
        framework = make_framework(plugins={
            "_pre": [P + n for n in ("P1", "P2", "P3", "P4", "P5")],
            "Article": {"_pre": [P + "Extra"]},
        })
        _, send = await dispatch(framework, "GET", "/user/show/12")
        assert last_response(send).get("trace") == [
            "P1", "P2", "P3", "P1", "P2", "P3", "P4", "P5", "Extra", "Article.list",
        ]

    @pytest.mark.asyncio
    async def test_controller_restart(self):
        framework = make_framework()
        _, send = await dispatch(framework, "GET", "/retry")
        assert last_response(send).get("attempts") == 3

    @pytest.mark.asyncio
    async def test_sub_controller_shares_response(self):
        framework = make_framework()
        _, send = await dispatch(framework, "GET", "/dashboard")
        body = json.loads(send.body)
        assert body["widget"] == "news"
        assert body["seen_widget"] == "news"

    @pytest.mark.asyncio
    async def test_http_error(self):
        framework = make_framework(plugins={"_post": [P + "PostOnly"]})
        request = make_request("GET", "/user/forbidden")
        with pytest.raises(HttpFault) as info:
            await framework.process(request)
        assert info.value.status == 403
        assert "PostOnly" not in request.state["response"].get("trace")

    @pytest.mark.asyncio
    async def test_http_code(self):
        framework = make_framework()
        _, send = await dispatch(framework, "GET", "/user/created")
        assert send.status == 201
        assert json.loads(send.body)["created"] is True

    @pytest.mark.asyncio
    async def test_plugin_from_controller_namespace(self):
        framework = make_framework(plugins={"_pre": ["Maintenance"]}, maintenance=True)
        with pytest.raises(HttpFault) as info:
            await dispatch(framework, "GET", "/user")
        assert info.value.status == 503

    @pytest.mark.asyncio
    async def test_bad_plugin_propagates(self):
        framework = make_framework(plugins={"_pre": ["Nowhere"]})
        with pytest.raises(FrameworkFault):
            await dispatch(framework, "GET", "/user")


# ============================================================================
# Reboots
# ============================================================================


class TestReboot:

    @pytest.mark.asyncio
    async def test_controller_reboot(self):
        framework = make_framework()
        status, send = await dispatch(framework, "GET", "/reboot")
        assert status is ExecStatus.FORWARD
        assert json.loads(send.body)["page"] == "home"

    @pytest.mark.asyncio
    async def test_plugin_reboot(self):
        framework = make_framework(plugins={"_pre": [P + "Rebooter"]})
        _, send = await dispatch(framework, "GET", "/old")
        body = json.loads(send.body)
        assert body["page"] == "home"
        assert body["trace"] == ["Rebooter"]

    @pytest.mark.asyncio
    async def test_reboot_keeps_request(self):
        framework = make_framework()
        request = make_request("GET", "/reboot")
        await framework.process(request)
        assert request.path_info == "/home"
        assert isinstance(request.state["loader"], Loader)

    @pytest.mark.asyncio
    async def test_reboot_keeps_plugin_rewrite(self):
        framework = make_framework(plugins={"_pre": [P + "Rewriter"]})
        status, send = await dispatch(framework, "GET", "/user/show/1")
        assert status is ExecStatus.FORWARD
        assert (send.request.controller, send.request.action) == ("article", "list")
        body = json.loads(send.body)
        assert body["trace"] == ["Rewriter", "Article.list"]
        assert body["CONTROLLER"] == "article"
        assert body["URL"] == "/user/show/1"

    @pytest.mark.asyncio
    async def test_reboot_limit(self):
        framework = make_framework({"maxReboots": 2})
        with pytest.raises(TooManyRebootsFault):
            await dispatch(framework, "GET", "/loop")

    @pytest.mark.asyncio
    async def test_default_reboot_limit(self):
        framework = make_framework()
        assert framework.config.max_reboots == 10
        with pytest.raises(TooManyRebootsFault) as info:
            await dispatch(framework, "GET", "/loop")
        assert info.value.metadata["limit"] == 10


# ============================================================================
# Trailing slash
# ============================================================================


class TestTrailingSlash:

    @pytest.mark.asyncio
    async def test_redirects(self):
        framework = make_framework(plugins={"_pre": [P + "P1"]})
        _, send = await dispatch(framework, "GET", "/user/")
        assert send.status == 301
        assert send.headers["location"] == "/user"
        assert not last_response(send).has("trace")

    @pytest.mark.asyncio
    async def test_keeps_query_and_site_path(self):
        framework = make_framework()
        _, send = await dispatch(framework, "GET", "/user/show/", query_string="a=1", root_path="/app")
        assert send.headers["location"] == "/app/user/show?a=1"

    @pytest.mark.asyncio
    async def test_only_for_get(self):
        framework = make_framework()
        _, send = await dispatch(framework, "POST", "/user/")
        assert send.status == 200

    @pytest.mark.asyncio
    async def test_disabled(self):
        framework = make_framework({"trailingSlashRedirect": False})
        _, send = await dispatch(framework, "GET", "/user/")
        assert json.loads(send.body)["users"] == ["alice", "bob"]


# ============================================================================
# Loader and bindings
# ============================================================================


class TestLoaderSetup:

    @pytest.mark.asyncio
    async def test_core_bindings(self):
        framework = make_framework(autoimport={"site": "demo"})
        request = make_request("GET", "/user/show/3")
        await framework.process(request)
        loader = request.state["loader"]
        assert loader.get(Config) is framework.config
        assert loader.get(Request) is request
        assert loader.get("framework") is framework
        assert isinstance(loader.get(RouteTable), RouteTable)
        assert request.state["response"] is loader.get(Response)

        response = loader.get("response")
        assert response.get("URL") == "/user/show/3"
        assert response.get("CONTROLLER") == "user"
        assert response.get("ACTION") == "show"
        assert response.get("conf") == {"site": "demo"}

    @pytest.mark.asyncio
    async def test_concurrent_requests_keep_their_loader(self):
        framework = make_framework()
        first = make_request("GET", "/user/show/1")
        second = make_request("GET", "/user/show/2")
        await asyncio.gather(framework.process(first), framework.process(second))
        assert first.state["loader"].get("request") is first
        assert second.state["loader"].get("request") is second
        assert first.state["response"].get("user") == {"id": "1"}
        assert second.state["response"].get("user") == {"id": "2"}
        assert not hasattr(framework, "loader")

    @pytest.mark.asyncio
    async def test_loader_settings(self):
        framework = make_framework(x_loader={"preload": {"answer": 42}, "aliases": {"Answer": "answer"}})
        _, send = await dispatch(framework, "GET", "/user")
        assert send.request.state["loader"].get("Answer") == 42

    @pytest.mark.asyncio
    async def test_custom_loader_class(self):
        framework = make_framework({"loader": TracingLoader})
        _, send = await dispatch(framework, "GET", "/user")
        assert isinstance(send.request.state["loader"], TracingLoader)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("loader", ["temma.response.Response", "nowhere.Loader"])
    async def test_invalid_loader_class(self, loader):
        framework = make_framework({"loader": loader})
        with pytest.raises(FrameworkFault) as info:
            await dispatch(framework, "GET", "/user")
        assert info.value.code == "LOADER_INVALID"

    def test_datasources(self):
        framework = make_framework({"dataSources": {"cache": "memory://"}})
        assert isinstance(framework.datasources["cache"], MemoryDatasource)

    def test_given_datasources(self):
        source = MemoryDatasource()
        framework = Framework(make_config(), datasources={"main": source})
        assert framework.datasources == {"main": source}

    @pytest.mark.asyncio
    async def test_without_writer(self):
        framework = make_framework()
        status = await framework.process(make_request("GET", "/user"))
        assert status is ExecStatus.FORWARD
        assert last_response(send).get("users") == ["alice", "bob"]


# ============================================================================
# Views and templates
# ============================================================================


class TestResponseResolution:

    @pytest.mark.asyncio
    async def test_invalid_view(self):
        framework = make_framework({"defaultView": "temma.response.Response"})
        with pytest.raises(FrameworkFault) as info:
            await dispatch(framework, "GET", "/user")
        assert info.value.code == "NO_VIEW"

    @pytest.mark.parametrize("requested, object_name, action, prefix, template, expected", [
        ("user", "User", "show", None, None, "user/show.html"),
        ("user", "User", None, None, None, "user/index.html"),
        (None, "Home", None, None, None, "home/index.html"),
        ("admin.user", "User", "list", None, None, "admin/user/list.html"),
        ("user", "User", "show", "/fr/", None, "fr/user/show.html"),
        ("user", "User", "show", "fr", "custom/page.html", "fr/custom/page.html"),
        ("user", "User", "show", None, "custom/page.html", "custom/page.html"),
    ])
    def test_template_for(self, requested, object_name, action, prefix, template, expected):
        response = Response()
        response.set_template_prefix(prefix)
        response.set_template(template)
        names = ControllerNames(requested, object_name, controllers.User, action)
        assert Framework.template_for(response, names) == expected
