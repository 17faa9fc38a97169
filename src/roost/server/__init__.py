"""Request pipeline — ASGI in, access gate, dispatch, ASGI out."""
