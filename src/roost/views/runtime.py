"""Client runtime bootstrap.

A small, framework-agnostic browser runtime injected into every layout.
It reads the embedded state document, keeps the component registry that
component scripts register into, and mounts the component named by the
``[data-roost-component]`` root once the document has loaded.

Component scripts register an adapter for their reactive view library::

    window.roost.register("user-profile", {
      mount(el, ctx) { /* ctx.state, ctx.params, ctx.query */ },
      unmount(el) { ... },
    });

Lifecycle events (``roost:mount``, ``roost:unmount``, ``roost:error``)
are dispatched on ``document`` so tooling can observe mounts.
"""

import html


def runtime_snippet(*, state_id: str, registry_id: str, version: str = "1") -> str:
    """Return the runtime ``<script>`` for a layout."""
    state_attr = html.escape(state_id, quote=True)
    registry_attr = html.escape(registry_id, quote=True)
    runtime = f"""
<script data-roost="runtime">
(function() {{
  if (window.roost) return;
  const VERSION = "{version}";
  const STATE_ID = "{state_attr}";
  const REGISTRY_ID = "{registry_attr}";
  const adapters = new Map();
  const mounted = new WeakMap();
  let embedded = null;

  function emit(name, detail) {{
    document.dispatchEvent(new CustomEvent(name, {{ detail: detail || {{}} }}));
  }}

  function readJSON(id, fallback) {{
    const el = document.getElementById(id);
    if (!el) return fallback;
    try {{
      return JSON.parse(el.textContent || "null");
    }} catch (err) {{
      emit("roost:error", {{ error: "parse", id: id, reason: String(err && err.message || err) }});
      return fallback;
    }}
  }}

  function data() {{
    if (embedded === null) {{
      embedded = readJSON(STATE_ID, {{ state: {{}}, params: {{}}, query: {{}} }});
    }}
    return embedded;
  }}

  function known() {{
    return readJSON(REGISTRY_ID, []);
  }}

  function versionOf(name) {{
    for (const el of document.querySelectorAll("script[data-roost-src]")) {{
      if (el.getAttribute("data-roost-src") === name) return el.getAttribute("data-roost-version") || VERSION;
    }}
    return VERSION;
  }}

  function register(name, adapter) {{
    if (!name || !adapter) return;
    adapters.set(name, adapter);
  }}

  function context() {{
    const doc = data();
    return {{ state: doc.state || {{}}, params: doc.params || {{}}, query: doc.query || {{}} }};
  }}

  function mount(el) {{
    if (!(el instanceof Element) || mounted.has(el)) return;
    const name = el.getAttribute("data-roost-component");
    if (!name) return;
    const adapter = adapters.get(name);
    if (!adapter || typeof adapter.mount !== "function") {{
      el.setAttribute("data-roost-state", "error");
      emit("roost:error", {{ error: "unregistered", name: name, known: known() }});
      return;
    }}
    try {{
      const cleanup = adapter.mount(el, context());
      mounted.set(el, {{ name: name, cleanup: cleanup }});
      el.setAttribute("data-roost-state", "mounted");
      emit("roost:mount", {{ name: name, version: versionOf(name) }});
    }} catch (err) {{
      el.setAttribute("data-roost-state", "error");
      emit("roost:error", {{ error: "mount", name: name, reason: String(err && err.message || err) }});
    }}
  }}

  function unmount(el) {{
    const entry = mounted.get(el);
    if (!entry) return;
    mounted.delete(el);
    if (typeof entry.cleanup === "function") entry.cleanup();
    const adapter = adapters.get(entry.name);
    if (adapter && typeof adapter.unmount === "function") adapter.unmount(el);
    el.setAttribute("data-roost-state", "unmounted");
    emit("roost:unmount", {{ name: entry.name }});
  }}

  function scan() {{
    document.querySelectorAll("[data-roost-component]").forEach(mount);
  }}

  document.addEventListener("DOMContentLoaded", scan);

  window.roost = {{
    version: VERSION,
    register: register,
    components: known,
    state: function() {{ return context().state; }},
    params: function() {{ return context().params; }},
    query: function() {{ return context().query; }},
    mount: mount,
    unmount: unmount,
    scan: scan,
  }};
}})();
</script>"""
    return runtime.strip()
