"""Tests for roost.app — registration, compiling, and the request pipeline."""

import asyncio
import logging
from typing import Any

import pytest

from roost.app import App
from roost.config import AppConfig
from roost.context import RequestContext
from roost.errors import MisconfiguredRoute, NotFound, NotMatched
from roost.http.request import Request
from roost.http.response import Response
from roost.routing.route import ViewTarget
from roost.security.roles import Role
from roost.store import RecordStore, default_store
from roost.testing import TestClient, basic_auth
from roost.views.state import read_embedded_state


def _directory_app(calls: list[RequestContext] | None = None) -> App:
    """The canonical app: a profile view plus the records API."""

    def current_user(context: RequestContext) -> dict[str, Any]:
        if calls is not None:
            calls.append(context)
        return {"currentUser": context.username}

    app = App(AppConfig(realm="directory"), state=current_user)
    store = default_store()
    app.provide(RecordStore, lambda: store)
    app.component("home", src="/static/home.js")
    app.component("user-profile", src="/static/user-profile.js")
    app.component("not-found")

    app.view("/", "home", roles=Role.ANYONE)
    app.view("/users/:user-id", "user-profile", roles=[Role.LOGGED_IN])

    @app.route("/api/users", roles=[Role.LOGGED_IN])
    def list_users(store: RecordStore):
        return [r.to_dict() for r in store.list_all()]

    @app.route("/api/users/{user_id}", roles=[Role.LOGGED_IN])
    def get_user(user_id: str, store: RecordStore):
        return store.get_by_id(user_id).to_dict()

    return app


class TestAppRegistration:
    def test_route_decorator(self) -> None:
        app = App()

        @app.route("/api/ping", roles=Role.ANYONE)
        def ping():
            return "pong"

        assert len(app._setup.routes) == 1
        assert app._setup.routes[0].path == "/api/ping"

    def test_view_registers_target(self) -> None:
        app = App()
        app.view("/", "home", roles=Role.ANYONE)
        assert app._setup.routes[0].target == ViewTarget("home")

    def test_fallback_decorator(self) -> None:
        app = App()

        @app.fallback(404)
        def not_found():
            return "Not found"

        assert 404 in app._setup.fallbacks

    def test_routes_in_registration_order(self) -> None:
        app = _directory_app()
        assert [r.path for r in app.routes] == [
            "/",
            "/users/:user-id",
            "/api/users",
            "/api/users/{user_id}",
        ]

    def test_cannot_register_after_compile(self) -> None:
        app = _directory_app()
        assert app.routes
        with pytest.raises(RuntimeError, match="Cannot modify"):
            app.view("/late", "home", roles=Role.ANYONE)
        with pytest.raises(RuntimeError):
            app.component("late")


class TestStateFunction:
    def test_state_decorator(self) -> None:
        app = App()

        @app.state
        def state(context: RequestContext) -> dict[str, Any]:
            return {}

        assert app._setup.state_fn is state

    def test_replacing_state_function_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        def first(context: RequestContext) -> dict[str, Any]:
            return {"which": "first"}

        app = App(state=first)

        with caplog.at_level(logging.WARNING, logger="roost.app"):

            @app.state
            def second(context: RequestContext) -> dict[str, Any]:
                return {"which": "second"}

        assert app._setup.state_fn is second
        assert "'first' replaced by 'second'" in caplog.text

    async def test_last_one_wins(self) -> None:
        app = App(state=lambda context: {"which": "first"})
        app.state(lambda context: {"which": "second"})
        app.component("home")
        app.view("/", "home", roles=Role.ANYONE)

        async with TestClient(app) as client:
            response = await client.get("/")
        assert read_embedded_state(response.text)["state"] == {"which": "second"}


class TestCompile:
    def test_unknown_component_fails_compile(self) -> None:
        app = App()
        app.component("home")
        app.view("/users/:user-id", "user-profile", roles=Role.LOGGED_IN)
        with pytest.raises(MisconfiguredRoute, match="'user-profile'"):
            app._compile()
        assert app.compiled is False

    async def test_test_client_surfaces_misconfiguration(self) -> None:
        app = App()
        app.view("/", "missing", roles=Role.ANYONE)
        with pytest.raises(MisconfiguredRoute):
            async with TestClient(app):
                pass

    def test_empty_roles_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        app = App()
        app.component("home")
        app.view("/locked", "home")
        with caplog.at_level(logging.WARNING, logger="roost.app"):
            assert app.routes
        assert "GET /locked has no permitted roles" in caplog.text

    def test_compile_is_idempotent(self) -> None:
        app = _directory_app()
        first = app._compile()
        assert app._compile() is first
        assert app.compiled


class TestViews:
    async def test_logged_in_profile(self) -> None:
        async with TestClient(_directory_app()) as client:
            response = await client.get("/users/2", headers=basic_auth("dave", "anything"))

        assert response.status == 200
        assert response.content_type.startswith("text/html")
        assert 'data-roost-component="user-profile"' in response.text
        assert read_embedded_state(response.text) == {
            "state": {"currentUser": "dave"},
            "params": {"user-id": "2"},
            "query": {},
        }

    async def test_component_scripts_listed(self) -> None:
        async with TestClient(_directory_app()) as client:
            response = await client.get("/")
        assert 'src="/static/user-profile.js"' in response.text
        assert 'data-roost="runtime"' in response.text

    async def test_component_version_rendered(self) -> None:
        app = App()
        app.component("home", src="/static/home.js", version="2024.1")
        app.view("/", "home", roles=Role.ANYONE)
        async with TestClient(app) as client:
            response = await client.get("/")
        assert 'data-roost-version="2024.1"' in response.text

    async def test_query_embedded(self) -> None:
        async with TestClient(_directory_app()) as client:
            response = await client.get("/users/2?tab=bio", auth="dave")
        assert read_embedded_state(response.text)["query"] == {"tab": "bio"}

    async def test_anyone_view_without_credentials(self) -> None:
        async with TestClient(_directory_app()) as client:
            response = await client.get("/")
        assert response.status == 200
        assert read_embedded_state(response.text)["state"] == {"currentUser": None}

    async def test_anonymous_denied_with_challenge(self) -> None:
        async with TestClient(_directory_app()) as client:
            response = await client.get("/users/2")
        assert response.status == 401
        assert response.header("www-authenticate") == 'Basic realm="directory"'
        assert "roost-state" not in response.text

    async def test_malformed_credentials_denied(self) -> None:
        async with TestClient(_directory_app()) as client:
            response = await client.get("/users/2", headers={"Authorization": "Basic !!"})
        assert response.status == 401

    async def test_empty_roles_always_401(self) -> None:
        app = App()
        app.component("home")
        app.view("/locked", "home")
        async with TestClient(app) as client:
            anonymous = await client.get("/locked")
            dave = await client.get("/locked", headers=basic_auth("dave"))
        assert anonymous.status == 401
        assert dave.status == 401

    async def test_identical_requests_identical_bodies(self) -> None:
        async with TestClient(_directory_app()) as client:
            first = await client.get("/users/3", headers=basic_auth("dave"))
            second = await client.get("/users/3", headers=basic_auth("dave"))
        assert first.body == second.body

    async def test_head_has_no_body(self) -> None:
        async with TestClient(_directory_app()) as client:
            response = await client.head("/")
        assert response.status == 200
        assert response.body == b""
        assert int(response.header("content-length") or "0") > 0

    async def test_custom_element_ids(self) -> None:
        app = App(AppConfig(mount_id="app", state_element_id="boot"))
        app.component("home")
        app.view("/", "home", roles=Role.ANYONE)
        async with TestClient(app) as client:
            response = await client.get("/")
        assert '<div id="app" data-roost-component="home">' in response.text
        assert read_embedded_state(response.text, "boot")["params"] == {}


class TestStateCalls:
    async def test_called_once_per_view(self) -> None:
        calls: list[RequestContext] = []
        async with TestClient(_directory_app(calls)) as client:
            await client.get("/users/2", headers=basic_auth("dave"))
        assert len(calls) == 1
        assert calls[0].path_params == {"user-id": "2"}
        assert calls[0].username == "dave"

    async def test_not_called_when_denied(self) -> None:
        calls: list[RequestContext] = []
        async with TestClient(_directory_app(calls)) as client:
            await client.get("/users/2")
        assert calls == []

    async def test_not_called_for_api(self) -> None:
        calls: list[RequestContext] = []
        async with TestClient(_directory_app(calls)) as client:
            await client.get("/api/users", headers=basic_auth("dave"))
        assert calls == []

    async def test_non_mapping_state_is_500(self) -> None:
        app = App(state=lambda context: "not a mapping")
        app.component("home")
        app.view("/", "home", roles=Role.ANYONE)
        async with TestClient(app) as client:
            response = await client.get("/")
        assert response.status == 500
        assert response.text == "Internal Server Error"

    async def test_non_finite_state_is_500(self) -> None:
        app = App(state=lambda context: {"ratio": float("nan")})
        app.component("home")
        app.view("/", "home", roles=Role.ANYONE)
        async with TestClient(app) as client:
            response = await client.get("/")
        assert response.status == 500
        assert "NaN" not in response.text


class TestApi:
    async def test_list(self) -> None:
        async with TestClient(_directory_app()) as client:
            response = await client.get("/api/users", headers=basic_auth("dave"))
        assert response.status == 200
        body = response.json_body()
        assert [u["id"] for u in body] == ["1", "2", "3", "4"]
        assert all("details" not in u for u in body)

    async def test_get_one(self) -> None:
        async with TestClient(_directory_app()) as client:
            response = await client.get("/api/users/2", auth=("dave", "pw"))
        body = response.json_body()
        assert body["name"] == "Bob Brewer"
        assert "details" in body

    async def test_missing_record_is_json_404(self) -> None:
        async with TestClient(_directory_app()) as client:
            response = await client.get("/api/users/99", headers=basic_auth("dave"))
        assert response.status == 404
        assert response.content_type.startswith("application/json")
        assert response.json_body() == {"error": "No record with id '99'", "status": 404}

    async def test_denied_is_json_401(self) -> None:
        async with TestClient(_directory_app()) as client:
            response = await client.get("/api/users")
        assert response.status == 401
        assert response.json_body() == {"error": "Unauthorized", "status": 401}
        assert response.header("www-authenticate") == 'Basic realm="directory"'

    async def test_hyphenated_param_converted(self) -> None:
        app = App()

        @app.route("/api/items/:item-id", roles=Role.ANYONE)
        def item(item_id: int):
            return {"id": item_id, "type": type(item_id).__name__}

        async with TestClient(app) as client:
            response = await client.get("/api/items/7")
        assert response.json_body() == {"id": 7, "type": "int"}

    async def test_request_and_context_injected(self) -> None:
        app = App()

        @app.route("/api/whoami", roles=Role.ANYONE)
        def whoami(request: Request, context: RequestContext):
            return {"path": request.path, "user": context.username}

        async with TestClient(app) as client:
            response = await client.get("/api/whoami", headers=basic_auth("carol"))
        assert response.json_body() == {"path": "/api/whoami", "user": "carol"}

    async def test_post_json(self) -> None:
        app = App()

        @app.route("/api/echo", methods=["POST"], roles=Role.LOGGED_IN)
        async def echo(request: Request):
            return await request.json(), 201

        async with TestClient(app) as client:
            response = await client.post(
                "/api/echo", json={"a": 1}, headers=basic_auth("dave")
            )
        assert response.status == 201
        assert response.json_body() == {"a": 1}

    async def test_unexpected_error_is_generic_500(self) -> None:
        app = App()

        @app.route("/api/boom", roles=Role.ANYONE)
        def boom():
            raise RuntimeError("secret internals")

        async with TestClient(app) as client:
            response = await client.get("/api/boom")
        assert response.status == 500
        assert "secret internals" not in response.text

    async def test_debug_500_shows_detail(self) -> None:
        app = App(AppConfig(debug=True))

        @app.route("/api/boom", roles=Role.ANYONE)
        def boom():
            raise RuntimeError("secret internals")

        async with TestClient(app) as client:
            response = await client.get("/api/boom")
        assert "RuntimeError: secret internals" in response.text


class TestRouterMisses:
    async def test_plain_404(self) -> None:
        async with TestClient(_directory_app()) as client:
            response = await client.get("/nowhere")
        assert response.status == 404
        assert response.content_type.startswith("text/plain")

    async def test_405_with_allow(self) -> None:
        async with TestClient(_directory_app()) as client:
            response = await client.delete("/api/users", headers=basic_auth("dave"))
        assert response.status == 405
        assert response.header("allow") == "GET"

    async def test_fallback_view(self) -> None:
        app = _directory_app()

        @app.fallback(404)
        def not_found():
            return ViewTarget("not-found")

        async with TestClient(app) as client:
            response = await client.get("/nowhere", headers=basic_auth("dave"))
        assert response.status == 404
        assert 'data-roost-component="not-found"' in response.text
        assert read_embedded_state(response.text)["state"] == {"currentUser": "dave"}

    async def test_fallback_not_used_for_handler_not_found(self) -> None:
        app = _directory_app()

        @app.fallback(404)
        def not_found():
            return ViewTarget("not-found")

        async with TestClient(app) as client:
            response = await client.get("/api/users/99", headers=basic_auth("dave"))
        assert response.status == 404
        assert response.json_body()["status"] == 404

    async def test_fallback_receives_request_and_error(self) -> None:
        app = App()
        seen: list[tuple[str, int]] = []

        @app.fallback(405)
        def method_not_allowed(request: Request, exc: Exception):
            seen.append((request.path, exc.status))
            return "try another method"

        @app.route("/api/only-get", roles=Role.ANYONE)
        def only_get():
            return "ok"

        async with TestClient(app) as client:
            response = await client.delete("/api/only-get")
        assert response.status == 405
        assert response.text == "try another method"
        assert response.header("allow") == "GET"
        assert seen == [("/api/only-get", 405)]

    async def test_broken_fallback_is_500(self) -> None:
        app = App()

        @app.fallback(404)
        def not_found():
            return ViewTarget("never-registered")

        async with TestClient(app) as client:
            response = await client.get("/nowhere")
        assert response.status == 500


class TestMiddleware:
    async def test_wraps_every_request(self) -> None:
        app = _directory_app()

        async def stamp(request: Request, next):
            response = await next(request)
            return response.with_header("X-Stamp", "1")

        app.add_middleware(stamp)
        async with TestClient(app) as client:
            view = await client.get("/")
            denied = await client.get("/api/users")
        assert view.header("x-stamp") == "1"
        assert denied.header("x-stamp") == "1"

    async def test_order(self) -> None:
        app = App()
        order: list[str] = []

        def tracer(label: str):
            async def mw(request: Request, next):
                order.append(f"{label}:in")
                response = await next(request)
                order.append(f"{label}:out")
                return response

            return mw

        app.add_middleware(tracer("outer"))
        app.add_middleware(tracer("inner"))

        @app.route("/api/ping", roles=Role.ANYONE)
        def ping():
            return "pong"

        async with TestClient(app) as client:
            await client.get("/api/ping")
        assert order == ["outer:in", "inner:in", "inner:out", "outer:out"]

    async def test_short_circuit(self) -> None:
        app = _directory_app()

        async def maintenance(request: Request, next):
            return Response("down", status=503)

        app.add_middleware(maintenance)
        async with TestClient(app) as client:
            response = await client.get("/")
        assert response.status == 503

    async def test_middleware_error_uses_plain_handler(self) -> None:
        app = _directory_app()

        async def gone(request: Request, next):
            raise NotFound("gone")

        app.add_middleware(gone)
        async with TestClient(app) as client:
            response = await client.get("/")
        assert response.status == 404
        assert response.text == "gone"

    async def test_middleware_router_miss_uses_fallback(self) -> None:
        app = _directory_app()

        @app.fallback(404)
        def missing():
            return ViewTarget("not-found")

        async def hidden(request: Request, next):
            raise NotMatched("hidden")

        app.add_middleware(hidden)
        async with TestClient(app) as client:
            response = await client.get("/")
        assert response.status == 404
        assert 'data-roost-component="not-found"' in response.text


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


async def _lifespan_exchange(app: App) -> tuple[list[dict[str, Any]], bool]:
    """Drive the lifespan protocol and return (sent_messages, startup_ok)."""
    sent: list[dict[str, Any]] = []
    receive_queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()

    async def receive() -> dict[str, Any]:
        return await receive_queue.get()

    async def send(message: dict[str, Any]) -> None:
        sent.append(message)

    scope: dict[str, Any] = {"type": "lifespan", "asgi": {"version": "3.0"}}
    task = asyncio.create_task(app(scope, receive, send))

    await receive_queue.put({"type": "lifespan.startup"})
    await asyncio.sleep(0.01)
    startup_ok = any(m["type"] == "lifespan.startup.complete" for m in sent)

    if startup_ok:
        await receive_queue.put({"type": "lifespan.shutdown"})
    await asyncio.wait_for(task, timeout=2.0)
    return sent, startup_ok


class TestLifespan:
    async def test_happy_path(self) -> None:
        app = _directory_app()
        events: list[str] = []

        @app.on_startup
        async def setup():
            events.append("startup")

        @app.on_shutdown
        def teardown():
            events.append("shutdown")

        sent, ok = await _lifespan_exchange(app)
        assert ok is True
        assert events == ["startup", "shutdown"]
        assert [m["type"] for m in sent] == [
            "lifespan.startup.complete",
            "lifespan.shutdown.complete",
        ]

    async def test_misconfigured_route_fails_startup(self) -> None:
        app = App()
        started: list[str] = []
        app.view("/users/:user-id", "user-profile", roles=Role.LOGGED_IN)

        @app.on_startup
        def setup():
            started.append("startup")

        sent, ok = await _lifespan_exchange(app)
        assert ok is False
        assert sent[0]["type"] == "lifespan.startup.failed"
        assert "user-profile" in sent[0]["message"]
        assert started == []

    async def test_test_client_runs_hooks(self) -> None:
        app = _directory_app()
        events: list[str] = []
        app.on_startup(lambda: events.append("startup"))
        app.on_shutdown(lambda: events.append("shutdown"))

        async with TestClient(app) as client:
            assert events == ["startup"]
            await client.get("/")
        assert events == ["startup", "shutdown"]
