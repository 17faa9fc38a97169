"""User directory — views gated by role, backed by a JSON API.

Routes:

    GET /                     anyone     -> "home" component
    GET /users                logged-in  -> "user-list" component
    GET /users/:user-id       logged-in  -> "user-profile" component
    GET /api/users            logged-in  -> records, details stripped
    GET /api/users/{user_id}  logged-in  -> one record, with details
    GET /static/{name}        anyone     -> component scripts
    (no match)                           -> "not-found" component, 404

Any username with any password counts as logged in; the password is
never checked.

Run:
    python examples/users/app.py
"""

from roost import App, AppConfig, RecordStore, Response, Role, ViewTarget
from roost.context import RequestContext
from roost.errors import NotFound
from roost.store import default_store

app = App(AppConfig(title="User directory", realm="directory"))
store = default_store()
app.provide(RecordStore, lambda: store)

# -- Client components --

COMPONENT_SCRIPTS: dict[str, str] = {
    "home.js": """
window.roost.register("home", {
  mount(el, ctx) {
    const who = ctx.state.currentUser || "stranger";
    const title = document.createElement("h1");
    title.textContent = `Hello, ${who}`;
    const link = document.createElement("a");
    link.href = "/users";
    link.textContent = "Browse users";
    el.replaceChildren(title, link);
  },
});
""",
    "user-list.js": """
window.roost.register("user-list", {
  async mount(el) {
    const users = await (await fetch("/api/users")).json();
    const list = document.createElement("ul");
    for (const u of users) {
      const link = document.createElement("a");
      link.href = `/users/${encodeURIComponent(u.id)}`;
      link.textContent = u.name;
      const item = document.createElement("li");
      item.append(link);
      list.append(item);
    }
    el.replaceChildren(list);
  },
});
""",
    "user-profile.js": """
window.roost.register("user-profile", {
  async mount(el, ctx) {
    const res = await fetch(`/api/users/${encodeURIComponent(ctx.params["user-id"])}`);
    if (res.status === 404) {
      el.textContent = "No such user.";
      return;
    }
    const user = await res.json();
    const name = document.createElement("h1");
    name.textContent = user.name;
    const email = document.createElement("p");
    email.textContent = user.email;
    el.replaceChildren(name, email);
  },
});
""",
    "not-found.js": """
window.roost.register("not-found", {
  mount(el) { el.textContent = "Nothing here."; },
});
""",
}

for script in COMPONENT_SCRIPTS:
    app.component(script.removesuffix(".js"), src=f"/static/{script}")


@app.state
def current_user(context: RequestContext) -> dict[str, str | None]:
    return {"currentUser": context.username}


# -- Views --

app.view("/", "home", roles=Role.ANYONE)
app.view("/users", "user-list", roles=Role.LOGGED_IN)
app.view("/users/:user-id", "user-profile", roles=Role.LOGGED_IN)


@app.fallback(404)
def not_found():
    return ViewTarget("not-found")


# -- API --


@app.route("/api/users", roles=Role.LOGGED_IN)
def list_users(store: RecordStore):
    return [record.to_dict() for record in store.list_all()]


@app.route("/api/users/{user_id}", roles=Role.LOGGED_IN)
def get_user(user_id: str, store: RecordStore):
    return store.get_by_id(user_id).to_dict()


@app.route("/static/{name}", roles=Role.ANYONE)
def static(name: str):
    source = COMPONENT_SCRIPTS.get(name)
    if source is None:
        raise NotFound(f"No script {name!r}")
    return Response(body=source, content_type="text/javascript; charset=utf-8")


if __name__ == "__main__":
    app.run()
