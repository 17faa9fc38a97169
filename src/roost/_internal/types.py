"""Callable shapes shared by the app, the pipeline and the test client."""

from collections.abc import Awaitable, Callable, MutableMapping
from typing import Any

# ASGI 3 connection scope and event messages
type Scope = MutableMapping[str, Any]
type Message = MutableMapping[str, Any]
type Receive = Callable[[], Awaitable[Message]]
type Send = Callable[[Message], Awaitable[None]]

# API routes and fallbacks introspect their own signatures
type Handler = Callable[..., Any]
type FallbackHandler = Callable[..., Any]

type Hook = Callable[[], Any]
