"""
Sample application for trying out http-expectations.

A minimal app served through httpx.MockTransport, so tests can talk to it
with a regular httpx client and no network.
"""

import hashlib
import hmac
import json

import httpx

APP_URL = "http://sample.test"
APP_KEY = "sample-secret"

USERS = {"ada@example.com": "lovelace"}
POSTS = {1: {"id": 1, "title": "Hello", "tags": ["intro"]}}


def _sign(url: str) -> str:
    signature = hmac.new(APP_KEY.encode(), url.encode(), hashlib.sha256).hexdigest()
    return f"{url}?signature={signature}"


def _json_body(request: httpx.Request) -> dict:
    try:
        return json.loads(request.content or b"{}")
    except ValueError:
        return {}


def handle(request: httpx.Request) -> httpx.Response:
    """Route a request to its handler."""
    path, method = request.url.path, request.method

    if path == "/" and method == "GET":
        return httpx.Response(
            200,
            html="<h1>Sample</h1><p>Posts &amp; more</p><ul><li>Hello</li></ul>",
        )

    if path == "/login" and method == "POST":
        form = dict(httpx.QueryParams(request.content.decode()))
        if USERS.get(form.get("email")) == form.get("password"):
            return httpx.Response(302, headers={"Location": "/dashboard"})
        return httpx.Response(302, headers={"Location": "/login"})

    if path == "/register" and method == "POST":
        return httpx.Response(302, headers={"Location": _sign(f"{APP_URL}/email/verify/2")})

    if path == "/api/posts" and method == "GET":
        return httpx.Response(200, json={"data": list(POSTS.values())})

    if path == "/api/posts" and method == "POST":
        payload = _json_body(request)
        if not payload.get("title"):
            return httpx.Response(
                422,
                json={
                    "message": "The given data was invalid.",
                    "errors": {"title": ["The title field is required."]},
                },
            )
        post = {"id": max(POSTS) + 1, "title": payload["title"], "tags": []}
        return httpx.Response(201, json={"data": post}, headers={"Location": f"/api/posts/{post['id']}"})

    if path == "/api/posts/export" and method == "GET":
        lines = ["id,title"] + [f"{p['id']},{p['title']}" for p in POSTS.values()]
        return httpx.Response(
            200,
            text="\n".join(lines),
            headers={"Content-Disposition": 'attachment; filename="posts.csv"'},
        )

    if path == "/admin":
        return httpx.Response(403, text="Forbidden")

    return httpx.Response(404, json={"message": "Not Found"})


transport = httpx.MockTransport(handle)
