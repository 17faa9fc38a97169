"""The roost application object.

An ``App`` collects registrations (views, API routes, components, the
state function, fallbacks, middleware, hooks) and then compiles them,
once, into an immutable runtime the request pipeline reads from.
Compiling happens on the first request, at ASGI lifespan startup,
when a ``TestClient`` is entered, or when ``routes`` is read.
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from roost._internal.invoke import invoke
from roost._internal.types import FallbackHandler, Handler, Hook, Receive, Scope, Send
from roost.config import AppConfig
from roost.middleware.protocol import Middleware
from roost.routing.route import Route, Target, ViewTarget
from roost.routing.router import Router
from roost.security.roles import RoleSpec, coerce_roles
from roost.server.handler import handle_request
from roost.views.components import Component, ComponentRegistry
from roost.views.dispatcher import ViewDispatcher
from roost.views.layout import create_environment, load_layout
from roost.views.state import StateFunction

logger = logging.getLogger("roost.app")


@dataclass(slots=True)
class _RouteDecl:
    path: str
    target: Target
    methods: list[str] | None
    roles: RoleSpec
    name: str | None


@dataclass(slots=True)
class _Registrations:
    """Everything declared on the app before it compiles."""

    components: ComponentRegistry
    state_fn: StateFunction | None = None
    routes: list[_RouteDecl] = field(default_factory=list)
    fallbacks: dict[int, FallbackHandler] = field(default_factory=dict)
    providers: dict[type, Callable[..., Any]] = field(default_factory=dict)
    middleware: list[Middleware] = field(default_factory=list)
    startup: list[Hook] = field(default_factory=list)
    shutdown: list[Hook] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class _Runtime:
    """The compiled app. Shared by every request, never mutated."""

    router: Router
    dispatcher: ViewDispatcher
    middleware: tuple[Middleware, ...]
    fallbacks: dict[int, FallbackHandler]
    providers: dict[type, Callable[..., Any]]


class App:
    """A roost application.

    Usage::

        app = App(AppConfig(title="Directory"))
        app.component("user-profile", src="/static/user-profile.js")
        app.view("/users/:user-id", "user-profile", roles=[Role.LOGGED_IN])

        @app.state
        def state(context):
            return {"currentUser": context.username}

        @app.route("/api/users/{user_id}", roles=[Role.LOGGED_IN])
        def get_user(user_id: str, store: RecordStore):
            return store.get_by_id(user_id).to_dict()

    Registration methods raise ``RuntimeError`` once the app has
    compiled. Compiling is guarded by a lock and a second check, so
    concurrent first requests compile exactly once. A compile that
    fails (``MisconfiguredRoute``, ``ConfigurationError``) leaves the
    app uncompiled.
    """

    __slots__ = ("_compile_lock", "_runtime", "_setup", "config")

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        state: StateFunction | None = None,
        components: ComponentRegistry | None = None,
    ) -> None:
        self.config = config or AppConfig()
        self._setup = _Registrations(
            components=components if components is not None else ComponentRegistry(),
            state_fn=state,
        )
        self._runtime: _Runtime | None = None
        self._compile_lock = threading.Lock()

    # -- Routes --

    def route(
        self,
        path: str,
        *,
        methods: list[str] | None = None,
        roles: RoleSpec = None,
        name: str | None = None,
    ) -> Callable[[Handler], Handler]:
        """Decorator registering a JSON API handler for *path*.

        Handler parameters are filled by name or annotation: ``request``,
        ``context``, path parameters (``user-id`` arrives as ``user_id``,
        converted to the annotated type), then anything registered with
        ``provide()``. The return value goes through content negotiation.

        Args:
            path: ``:param``, ``{param}`` or ``{param:int|float|path}``.
            methods: Defaults to ``["GET"]``; ``HEAD`` is served by GET.
            roles: Permitted roles. Omitted or empty means every request
                is answered with 401.
            name: Label for introspection.
        """

        def register(func: Handler) -> Handler:
            self._declare(_RouteDecl(path, func, methods, roles, name))
            return func

        return register

    def view(
        self,
        path: str,
        component: str,
        *,
        roles: RoleSpec = None,
        methods: list[str] | None = None,
        name: str | None = None,
    ) -> None:
        """Serve the layout shell mounting *component* at *path*.

        *component* has to be registered by the time the app compiles.
        """
        self._declare(_RouteDecl(path, ViewTarget(component), methods, roles, name))

    def component(self, name: str, src: str | None = None, *, version: str = "1") -> None:
        """Make a client component available to views."""
        self._check_open()
        self._setup.components.add(Component(name=name, src=src, version=version))

    def state(self, func: StateFunction) -> StateFunction:
        """Decorator setting the state function (same as ``App(state=...)``).

        There is one state function per app. Setting another replaces it
        and logs a warning.
        """
        self._check_open()
        current = self._setup.state_fn
        if current is not None and current is not func:
            logger.warning(
                "State function %r replaced by %r",
                getattr(current, "__name__", current),
                getattr(func, "__name__", func),
            )
        self._setup.state_fn = func
        return func

    def provide(self, annotation: type, factory: Callable[..., Any]) -> None:
        """Inject ``factory()`` into API handler parameters annotated *annotation*."""
        self._check_open()
        self._setup.providers[annotation] = factory

    def fallback(self, status: int) -> Callable[[FallbackHandler], FallbackHandler]:
        """Decorator registering the answer to a router miss with *status*.

        Only 404 (no route fits the path) and 405 (no route fits the
        method) reach a fallback. Return a ``ViewTarget`` to render a
        component with that status::

            @app.fallback(404)
            def not_found():
                return ViewTarget("not-found")
        """

        def register(func: FallbackHandler) -> FallbackHandler:
            self._check_open()
            self._setup.fallbacks[status] = func
            return func

        return register

    def add_middleware(self, middleware: Middleware) -> None:
        """Append *middleware*; the first added is the outermost."""
        self._check_open()
        self._setup.middleware.append(middleware)

    def on_startup(self, func: Hook) -> Hook:
        """Decorator for a hook run after the app compiles at startup."""
        self._check_open()
        self._setup.startup.append(func)
        return func

    def on_shutdown(self, func: Hook) -> Hook:
        self._check_open()
        self._setup.shutdown.append(func)
        return func

    # -- Lifecycle --

    @property
    def compiled(self) -> bool:
        return self._runtime is not None

    @property
    def routes(self) -> list[Route]:
        """Routes in match order. Compiles the app."""
        return self._compile().router.routes

    async def startup(self) -> None:
        """Compile, then run startup hooks in registration order."""
        self._compile()
        for hook in self._setup.startup:
            await invoke(hook)

    async def shutdown(self) -> None:
        for hook in self._setup.shutdown:
            await invoke(hook)

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Compile and serve with pounce (``pip install roost[server]``)."""
        self._compile()

        from roost.server.dev import run_server

        run_server(
            self,
            host or self.config.host,
            port or self.config.port,
            reload=self.config.debug,
            log_level=self.config.log_level,
        )

    # -- ASGI --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await self._lifespan(receive, send)
            return

        runtime = self._compile()
        await handle_request(
            scope,
            receive,
            send,
            router=runtime.router,
            dispatcher=runtime.dispatcher,
            middleware=runtime.middleware,
            fallbacks=runtime.fallbacks,
            providers=runtime.providers,
            realm=self.config.realm,
            debug=self.config.debug,
        )

    async def _lifespan(self, receive: Receive, send: Send) -> None:
        """ASGI lifespan. A compile error fails startup."""
        while True:
            event = (await receive())["type"]
            if event == "lifespan.startup":
                try:
                    await self.startup()
                except Exception as exc:
                    logger.exception("Startup failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})
            elif event == "lifespan.shutdown":
                await self.shutdown()
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Compilation --

    def _compile(self) -> _Runtime:
        runtime = self._runtime
        if runtime is not None:
            return runtime
        with self._compile_lock:
            if self._runtime is None:
                self._runtime = self._build_runtime()
            return self._runtime

    def _build_runtime(self) -> _Runtime:
        """Check every declaration and assemble the runtime.

        Raises ``MisconfiguredRoute`` for a view naming an unknown
        component and ``ConfigurationError`` for bad paths or roles.
        """
        setup = self._setup
        router = Router()
        for decl in setup.routes:
            methods = frozenset(m.upper() for m in decl.methods or ["GET"])
            roles = coerce_roles(decl.roles)
            if isinstance(decl.target, ViewTarget):
                setup.components.resolve(decl.target.component, route=decl.path)
            if not roles:
                logger.warning(
                    "Route %s %s has no permitted roles and will always answer 401",
                    ",".join(sorted(methods)),
                    decl.path,
                )
            router.add(Route(decl.path, decl.target, methods, roles, decl.name))
        router.compile()

        env = create_environment(self.config)
        dispatcher = ViewDispatcher(
            setup.components, load_layout(env, self.config), setup.state_fn, self.config
        )
        return _Runtime(
            router=router,
            dispatcher=dispatcher,
            middleware=tuple(setup.middleware),
            fallbacks=dict(setup.fallbacks),
            providers=dict(setup.providers),
        )

    def _declare(self, decl: _RouteDecl) -> None:
        self._check_open()
        self._setup.routes.append(decl)

    def _check_open(self) -> None:
        if self._runtime is not None:
            msg = (
                "Cannot modify the app after it has compiled. Register views, "
                "routes and components before the first request or app.run()."
            )
            raise RuntimeError(msg)
