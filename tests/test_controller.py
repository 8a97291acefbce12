"""
Controller engine: name resolution, action dispatch, lifecycle hooks,
sub-controllers and executor delegation.
"""

import pytest

from temma.controller import Controller, ControllerEngine, ControllerNames, reserved_names
from temma.datasource import MemoryDatasource
from temma.faults import ApplicationFault, HttpFault
from temma.flow import ExecStatus
from temma.loader import Loader, ParameterCache
from temma.response import Response

from conftest import make_config, make_request
from sampleapp import controllers


def make_env(path="/", method="GET", headers=None, datasources=None, **application):
    config = make_config(application)
    request = make_request(method, path, headers=headers)
    response = Response()
    loader = Loader(
        {
            "config": config,
            "request": request,
            "response": response,
            "dataSources": datasources or {},
        },
        parameter_cache=ParameterCache(),
    )
    executor = Controller(loader)
    loader.set("controller", executor)
    return loader, executor, loader.get(ControllerEngine), response


# ============================================================================
# Name resolution
# ============================================================================


class TestResolveNames:

    def test_capitalized_name_under_namespace(self):
        _, _, engine, _ = make_env()
        names = engine.resolve_names("user", "show")
        assert isinstance(names, ControllerNames)
        assert names.controller_class is controllers.User
        assert names.object_name == "User"
        assert names.requested == "user"
        assert names.action == "show"
        assert names.error is None

    def test_root_controller(self):
        _, _, engine, _ = make_env(rootController="Home")
        names = engine.resolve_names(None, None)
        assert names.controller_class is controllers.Home

    def test_no_root_controller(self):
        _, _, engine, _ = make_env()
        names = engine.resolve_names(None, None)
        assert names.controller_class is None
        assert names.error

    def test_routes_alias(self):
        _, _, engine, _ = make_env()
        engine.loader.get("config").to_dict()["routes"] = {"people": "User"}
        names = engine.resolve_names("people", "list")
        assert names.controller_class is controllers.User
        assert names.object_name == "User"
        assert names.requested == "people"

    def test_name_must_start_lowercase(self):
        _, _, engine, _ = make_env(defaultController="Fallback")
        names = engine.resolve_names("User", "show")
        assert names.controller_class is None
        assert "lowercase" in names.error

    def test_suffix(self):
        _, _, engine, _ = make_env(controllersSuffix="Ctrl")
        names = engine.resolve_names("report", None)
        assert names.controller_class is controllers.ReportCtrl
        assert names.object_name == "ReportCtrl"

    def test_absolute_dotted_name(self):
        _, _, engine, _ = make_env()
        names = engine.resolve_names("sampleapp.controllers.user", "show")
        assert names.controller_class is controllers.User

    def test_proxy_controller_preempts(self):
        _, _, engine, _ = make_env(proxyController="Page")
        assert engine.resolve_names("user", "show").controller_class is controllers.Page
        assert engine.resolve_names(None, None).controller_class is controllers.Page

    def test_default_controller_fallback(self):
        _, _, engine, _ = make_env(defaultController="Fallback")
        names = engine.resolve_names("nowhere", "show")
        assert names.controller_class is controllers.Fallback
        assert names.object_name == "Fallback"

    def test_unknown_without_default(self):
        _, _, engine, _ = make_env()
        names = engine.resolve_names("nowhere", "show")
        assert names.controller_class is None
        assert "nowhere" in names.error

    def test_class_given_directly(self):
        _, _, engine, _ = make_env()
        assert engine.resolve_controller_class(controllers.User) is controllers.User

    def test_reserved_names(self):
        reserved = reserved_names()
        assert reserved == {"init", "finalize", "auto_dao", "preplugin", "postplugin", "plugin"}


# ============================================================================
# Execution
# ============================================================================


class TestSubProcess:

    @pytest.mark.asyncio
    async def test_lifecycle_order(self):
        _, executor, engine, response = make_env()
        status = await engine.sub_process(executor, controllers.User, "show", [12])
        assert status is ExecStatus.FORWARD
        assert response.get("trace") == ["User.init", "User.show", "User.finalize"]
        assert response.get("user") == {"id": 12}

    @pytest.mark.asyncio
    async def test_params_default_to_request(self):
        _, executor, engine, response = make_env("/user/show/12")
        await engine.sub_process(executor, "User", "show")
        assert response.get("user") == {"id": "12"}

    @pytest.mark.asyncio
    async def test_root_action(self):
        _, executor, engine, response = make_env()
        await engine.sub_process(executor, "User", None, [])
        assert response.get("users") == ["alice", "bob"]

    @pytest.mark.asyncio
    async def test_missing_root_action(self):
        _, executor, engine, _ = make_env()
        with pytest.raises(HttpFault) as info:
            await engine.sub_process(executor, "Article", None, [])
        assert info.value.status == 404

    @pytest.mark.asyncio
    @pytest.mark.parametrize("action", ["Show", "_secret", "nope", "_get", "init", "finalize", "_sub_process", "preplugin"])
    async def test_invalid_actions(self, action):
        _, executor, engine, _ = make_env()
        with pytest.raises(HttpFault) as info:
            await engine.sub_process(executor, "User", action, [])
        assert info.value.status == 404

    @pytest.mark.asyncio
    async def test_action_named_view(self):
        _, executor, engine, response = make_env("/article/view/3")
        status = await engine.sub_process(executor, "Article", "view", ["3"])
        assert status is ExecStatus.FORWARD
        assert response.get("article") == "3"

    @pytest.mark.asyncio
    async def test_action_named_delete(self):
        _, executor, engine, response = make_env("/article/delete/5")
        status = await engine.sub_process(executor, "Article", "delete", ["5"])
        assert status is ExecStatus.HALT
        assert response.get("deleted") == "5"
        assert response.redirect_url == "/article"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("params", [[], [1, 2]])
    async def test_wrong_parameter_count(self, params):
        _, executor, engine, _ = make_env()
        with pytest.raises(HttpFault):
            await engine.sub_process(executor, "User", "show", params)

    @pytest.mark.asyncio
    async def test_optional_parameter(self):
        _, executor, engine, response = make_env()
        await engine.sub_process(executor, "User", "edit", [3])
        assert response.get("edit") == [3, "main"]

    @pytest.mark.asyncio
    async def test_proxy_action(self):
        _, executor, engine, response = make_env()
        await engine.sub_process(executor, "Page", "about", ["team"])
        assert response.get("proxied") == ["about", "team"]

    @pytest.mark.asyncio
    async def test_non_forward_skips_finalize(self):
        _, executor, engine, response = make_env()
        status = await engine.sub_process(executor, "User", "forbidden", [])
        assert status is ExecStatus.HALT
        assert response.http_error == 403
        assert "User.finalize" not in response.get("trace")

    @pytest.mark.asyncio
    async def test_async_action(self):
        _, executor, engine, response = make_env()
        status = await engine.sub_process(executor, "User", "remove", [1])
        assert status is ExecStatus.HALT
        assert response.redirect_url == "/user"

    @pytest.mark.asyncio
    async def test_unknown_controller(self):
        _, executor, engine, _ = make_env()
        with pytest.raises(HttpFault):
            await engine.sub_process(executor, "Nowhere", None, [])

    @pytest.mark.asyncio
    async def test_not_a_controller(self):
        _, executor, engine, _ = make_env()
        with pytest.raises(HttpFault):
            await engine.sub_process(executor, "Users", None, [])

    @pytest.mark.asyncio
    async def test_parent_controller_restored(self):
        loader, executor, engine, _ = make_env()
        await engine.sub_process(executor, "User", "show", [1])
        assert loader.get("parentController", auto_instantiate=False) is None


# ============================================================================
# Sub-controllers and delegation
# ============================================================================


class TestSubControllers:

    @pytest.mark.asyncio
    async def test_sub_controller_shares_response(self):
        _, executor, engine, response = make_env()
        await engine.sub_process(executor, "Dashboard", None, [])
        assert response.get("widget") == "news"
        assert response.get("seen_widget") == "news"
        assert response.get("sub_status") == "FORWARD"

    @pytest.mark.asyncio
    async def test_nested_sub_controllers(self):
        _, executor, engine, response = make_env()
        await engine.sub_process(executor, "Dashboard", "deep", [])
        assert response.get("widget") == "deep"
        assert response.get("seen_widget") == "deep"

    @pytest.mark.asyncio
    async def test_missing_sub_controller(self):
        _, executor, engine, _ = make_env()
        with pytest.raises(HttpFault):
            await engine.sub_process(executor, "Dashboard", "missing", [])

    def test_delegation_to_executor(self):
        loader, executor, _, response = make_env()
        child = Controller(loader, Controller(loader, executor))
        child._set("name", "bob")
        assert response.get("name") == "bob"
        assert child._get("name") == "bob"
        assert child._has("name")
        child._delete("name")
        assert not response.has("name")

        assert child._http_error(404) is ExecStatus.HALT
        assert response.http_error == 404
        assert child._http_code(201) is ExecStatus.HALT
        assert response.http_code == 201
        assert child._redirect("/a") is ExecStatus.HALT
        assert (response.redirect_url, response.redirect_code) == ("/a", 302)
        child._redirect301("/b")
        assert (response.redirect_url, response.redirect_code) == ("/b", 301)

        assert child._view("x.View")._template("t.html")._template_prefix("fr") is child
        assert (response.view, response.template, response.template_prefix) == ("x.View", "t.html", "fr")

    def test_template_variables_as_mapping(self):
        loader, executor, _, response = make_env()
        child = Controller(loader, executor)
        child["name"] = "bob"
        assert response.get("name") == "bob"
        assert "name" in child
        assert child["name"] == "bob"
        del child["name"]
        assert "name" not in child
        with pytest.raises(KeyError):
            child["name"]

    def test_accessors(self):
        loader, executor, _, response = make_env("/user", datasources={"main": MemoryDatasource()})
        assert executor._request.controller == "user"
        assert executor._response is response
        assert executor._config is loader.get("config")
        assert executor._session is None
        assert isinstance(executor._datasource("main"), MemoryDatasource)
        assert executor._datasource("other") is None

    @pytest.mark.asyncio
    async def test_load_dao(self):
        source = MemoryDatasource({"users:5": {"id": 5, "name": "bob"}})
        _, executor, engine, response = make_env(datasources={"main": source})
        await engine.sub_process(executor, "Profile", "show", [5])
        assert response.get("profile") == {"id": 5, "name": "bob"}

    @pytest.mark.asyncio
    async def test_auto_dao(self):
        _, executor, engine, response = make_env(datasources={"main": MemoryDatasource()})
        executor._set("CONTROLLER", "badge")
        await engine.sub_process(executor, "Badge", None, [])
        assert response.get("badge_table") == "badge"


# ============================================================================
# Attributes on controllers
# ============================================================================


class TestControllerAttributes:

    @pytest.mark.asyncio
    async def test_class_attribute_redirects(self):
        _, executor, engine, response = make_env()
        status = await engine.sub_process(executor, "Account", None, [])
        assert status is ExecStatus.HALT
        assert response.redirect_url == "/login"
        assert not response.has("account")

    @pytest.mark.asyncio
    async def test_class_attribute_passes(self):
        _, executor, engine, response = make_env()
        response.set("currentUser", {"id": 3})
        await engine.sub_process(executor, "Account", None, [])
        assert response.get("account") is True

    @pytest.mark.asyncio
    async def test_method_attribute_rejects(self):
        _, executor, engine, response = make_env(method="POST")
        with pytest.raises(ApplicationFault) as info:
            await engine.sub_process(executor, "Admin", "list", [])
        assert info.value.status == 403
        assert not response.has("listed")

    @pytest.mark.asyncio
    async def test_method_attribute_only_on_its_method(self):
        _, executor, engine, response = make_env(method="POST")
        response.set("currentUser", {"id": 1, "roles": {"admin": True}})
        await engine.sub_process(executor, "Admin", "purge", [])
        assert response.get("purged") is True

    @pytest.mark.asyncio
    async def test_role_missing(self):
        _, executor, engine, response = make_env()
        response.set("currentUser", {"id": 1, "roles": {"user": True}})
        with pytest.raises(ApplicationFault) as info:
            await engine.sub_process(executor, "Admin", "purge", [])
        assert info.value.status == 403
