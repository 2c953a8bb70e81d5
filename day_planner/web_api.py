"""HTTP API for the Telegram Mini App.

A single task endpoint reads or replaces the caller's task list for one
day. Uses aiohttp.

Authentication is via Telegram initData HMAC validation on every request.
"""

import json
import re
import time
from dataclasses import dataclass, field
from typing import Any

from aiohttp import web

from .config import Config
from .errors import AuthenticationError, ClientInputError, StorageError
from .gateway import TaskGateway
from .store import SupabaseTaskStore
from .web_auth import extract_user_id, is_fresh, verify


ACTIONS = ("get", "save")
DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")


@dataclass
class TaskRequest:
    init_data: str
    identity: str
    action: str
    date: str
    tasks: list[Any] = field(default_factory=list)


def parse_task_request(body: Any, auth_header: str = "") -> TaskRequest:
    """Validate the shape of a task request before any auth or storage work."""
    if not isinstance(body, dict):
        raise ClientInputError("request body must be a JSON object")

    identity = body.get("telegramId")
    if isinstance(identity, int) and not isinstance(identity, bool):
        identity = str(identity)
    if not identity or not isinstance(identity, str):
        raise ClientInputError("telegramId is required")

    action = body.get("action")
    if not action or not isinstance(action, str):
        raise ClientInputError("action is required")

    date = body.get("date")
    if not date or not isinstance(date, str) or not DATE_RE.fullmatch(date):
        raise ClientInputError("date is required (YYYY-MM-DD)")

    if action not in ACTIONS:
        raise ClientInputError("Unknown action. Use 'get' or 'save'.")

    tasks = body.get("tasks")
    if action == "save" and not isinstance(tasks, list):
        raise ClientInputError("tasks must be an array")

    init_data = body.get("initData")
    if not init_data and auth_header.startswith("tma "):
        init_data = auth_header[4:]
    if not isinstance(init_data, str):
        init_data = ""

    return TaskRequest(
        init_data=init_data, identity=identity, action=action, date=date,
        tasks=tasks if action == "save" else [],
    )


def authenticate(config: Config, req: TaskRequest) -> str:
    """Verify initData and return the identity it vouches for.

    The telegramId from the body is only trusted when it matches the
    signed user id.
    """
    if not verify(req.init_data, config.telegram_token):
        raise AuthenticationError()
    if config.init_data_max_age > 0 and not is_fresh(req.init_data, config.init_data_max_age):
        raise AuthenticationError()
    if extract_user_id(req.init_data) != req.identity:
        raise AuthenticationError()
    return req.identity


async def handle_tasks(request: web.Request) -> web.Response:
    """POST /api/tasks: get or save one day's task list.

    Body: {"initData": "...", "telegramId": "42", "action": "get"|"save",
           "date": "YYYY-MM-DD", "tasks": [...]}
    """
    config: Config = request.app["config"]
    gateway: TaskGateway = request.app["gateway"]

    try:
        body = await request.json()
    except (json.JSONDecodeError, ValueError):
        return web.json_response({"error": "Invalid JSON body"}, status=400)

    try:
        req = parse_task_request(body, request.headers.get("Authorization", ""))
        identity = authenticate(config, req)
        if req.action == "get":
            tasks = await gateway.get_tasks(identity, req.date)
            return web.json_response({"tasks": tasks})
        await gateway.save_tasks(identity, req.date, req.tasks)
        return web.json_response({"ok": True})
    except ClientInputError as e:
        return web.json_response({"error": str(e)}, status=400)
    except AuthenticationError as e:
        return web.json_response({"error": str(e)}, status=401)
    except StorageError as e:
        payload = {"error": e.message}
        if e.details:
            payload["details"] = e.details
        return web.json_response(payload, status=502)


async def handle_health(request: web.Request) -> web.Response:
    """GET /api/health: simple health check, no auth required."""
    return web.json_response({"status": "ok", "time": int(time.time())})


@web.middleware
async def cors_middleware(request: web.Request, handler) -> web.Response:
    """Add CORS headers for the Mini App frontend."""
    if request.method == "OPTIONS":
        response = web.Response()
    else:
        try:
            response = await handler(request)
        except web.HTTPMethodNotAllowed:
            response = web.json_response({"error": "method not allowed"}, status=405)

    allowed_origin = request.app.get("cors_origin", "*")
    response.headers["Access-Control-Allow-Origin"] = allowed_origin
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
    response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
    return response


@web.middleware
async def logging_middleware(request: web.Request, handler) -> web.Response:
    """Log all incoming requests."""
    start = time.time()
    try:
        response = await handler(request)
        elapsed = (time.time() - start) * 1000
        print(f"[API] {request.method} {request.path} → {response.status} ({elapsed:.0f}ms)")
        return response
    except Exception as e:
        elapsed = (time.time() - start) * 1000
        print(f"[API] {request.method} {request.path} → ERROR: {e} ({elapsed:.0f}ms)")
        raise


async def _close_store(app: web.Application) -> None:
    close = getattr(app["gateway"].store, "close", None)
    if close is not None:
        await close()


def create_web_app(config: Config, gateway: TaskGateway | None = None) -> web.Application:
    """Create and configure the aiohttp web application."""
    if gateway is None:
        store = SupabaseTaskStore(
            config.store_url, config.store_key, config.store_table,
            timeout=config.store_timeout or None,
        )
        gateway = TaskGateway(store)

    app = web.Application(middlewares=[logging_middleware, cors_middleware])
    app["config"] = config
    app["gateway"] = gateway
    app["cors_origin"] = config.cors_origin
    app.on_cleanup.append(_close_store)

    app.router.add_get("/api/health", handle_health)
    app.router.add_post("/api/tasks", handle_tasks)

    return app
