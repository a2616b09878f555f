"""FastAPI web application for todoview."""

import asyncio
import contextlib
import json
import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, StreamingResponse
from sqlalchemy.orm import Session

from todoview import __version__
from todoview.api.api_models import HealthResponse, LoginRequest, LoginResponse, TasksResponse
from todoview.auth.dependencies import get_settings, require_session, require_session_from_query
from todoview.auth.jwt import create_access_token
from todoview.auth.password import verify_password
from todoview.auth.webhook import WEBHOOK_SIGNATURE_HEADER, verify_webhook_signature
from todoview.config import Settings, load_settings
from todoview.database.database import build_engine, build_session_factory, init_db
from todoview.integrations.todoist import TodoistClient
from todoview.services.refresher import SnapshotRefresher

logger = logging.getLogger(__name__)

CONFIG_ERROR_DETAIL = "Server configuration error"


def create_app(
    settings: Optional[Settings] = None,
    client_factory: Optional[Callable[[], TodoistClient]] = None,
    session_factory: Optional[Callable[[], Session]] = None,
) -> FastAPI:
    """Create the FastAPI app.

    Args:
        settings: Service settings (defaults to load_settings())
        client_factory: Builds the Todoist client (defaults to one built from settings)
        session_factory: Snapshot cache sessions (defaults to one built from settings.database_url)

    Returns:
        Configured FastAPI app
    """
    settings = settings or load_settings()
    refresher = SnapshotRefresher(
        client_factory or (lambda: TodoistClient.from_settings(settings)),
        session_factory=session_factory,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if refresher.session_factory is None:
            engine = build_engine(settings.database_url)
            init_db(engine)
            refresher.session_factory = build_session_factory(engine)
        refresher.load_cached()

        refresh_task = None
        if settings.enable_background_refresh and settings.todoist_api_token:
            refresh_task = asyncio.create_task(refresher.run_forever(settings.refresh_interval_seconds))
            logger.info(f"Background refresh every {settings.refresh_interval_seconds:g}s")
        elif settings.enable_background_refresh:
            logger.warning("TODOIST_API_TOKEN is not set; background refresh disabled")

        yield

        if refresh_task is not None:
            refresh_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await refresh_task

    app = FastAPI(
        title="todoview API",
        description="Read-only, password-gated view of a Todoist account",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.refresher = refresher

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    _register_routes(app)
    return app


def get_refresher(request: Request) -> SnapshotRefresher:
    return request.app.state.refresher


def _register_routes(app: FastAPI) -> None:

    @app.get("/", response_class=HTMLResponse)
    async def root():
        """Root endpoint with the polling client."""
        return INDEX_HTML

    @app.get("/health", response_model=HealthResponse)
    async def health(refresher: SnapshotRefresher = Depends(get_refresher)):
        """Health check endpoint."""
        return HealthResponse(
            status="healthy",
            version=__version__,
            has_snapshot=refresher.snapshot is not None,
            last_error=refresher.last_error,
        )

    @app.post("/api/auth/login", response_model=LoginResponse)
    async def login(body: LoginRequest, settings: Settings = Depends(get_settings)):
        """Exchange the shared password for a session token."""
        if not body.password:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Password is required")

        if not settings.app_password or not settings.session_secret:
            logger.error("Missing APP_PASSWORD or SESSION_SECRET environment variables")
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=CONFIG_ERROR_DETAIL)

        if not verify_password(body.password, settings.app_password):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid password")

        return LoginResponse(token=create_access_token(settings))

    @app.get("/api/tasks", response_model=TasksResponse)
    async def get_tasks(
        refresh: bool = False,
        _subject: str = Depends(require_session),
        settings: Settings = Depends(get_settings),
        refresher: SnapshotRefresher = Depends(get_refresher),
    ):
        """Get the transformed snapshot.

        Serves the latest snapshot; fetches one first if none exists yet or
        if `refresh=true` is passed.
        """
        if refresh or refresher.snapshot is None:
            if not settings.todoist_api_token:
                logger.error("Missing TODOIST_API_TOKEN environment variable")
                raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=CONFIG_ERROR_DETAIL)
            await run_in_threadpool(refresher.refresh)

        snapshot = refresher.snapshot
        if snapshot is None:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=refresher.last_error or "Failed to fetch from Todoist",
            )

        return TasksResponse(
            projects=snapshot.projects,
            labels=snapshot.labels,
            sync_token=snapshot.sync_token,
            fetched_at=snapshot.fetched_at,
            stale=refresher.last_error is not None,
            error=refresher.last_error,
        )

    @app.post("/api/webhook")
    async def webhook(
        request: Request,
        background_tasks: BackgroundTasks,
        settings: Settings = Depends(get_settings),
        refresher: SnapshotRefresher = Depends(get_refresher),
    ):
        """Receive a Todoist webhook delivery and schedule a refresh."""
        if not settings.todoist_client_secret:
            logger.error("Missing TODOIST_CLIENT_SECRET environment variable")
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=CONFIG_ERROR_DETAIL)

        raw_body = await request.body()
        signature = request.headers.get(WEBHOOK_SIGNATURE_HEADER)
        if not verify_webhook_signature(raw_body, signature, settings.todoist_client_secret):
            logger.error("Invalid webhook signature")
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid signature")

        try:
            payload = json.loads(raw_body or b"{}")
        except ValueError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON body")
        if not isinstance(payload, dict):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON body")

        logger.info(
            f"Received webhook: event={payload.get('event_name')} "
            f"user={payload.get('user_id')} triggered_at={payload.get('triggered_at')}"
        )
        if settings.todoist_api_token:
            background_tasks.add_task(refresher.refresh)
        return Response(status_code=status.HTTP_200_OK)

    @app.get("/api/events")
    async def events(
        _subject: str = Depends(require_session_from_query),
        settings: Settings = Depends(get_settings),
    ):
        """Server-sent liveness stream: a `connected` event, then heartbeats."""
        return StreamingResponse(
            _heartbeat_stream(settings.heartbeat_interval_seconds, settings.max_heartbeats),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",
            },
        )


def format_sse_event(event: str, data: dict) -> str:
    """Format one server-sent event."""
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


async def _heartbeat_stream(interval_seconds: float, max_heartbeats: int) -> AsyncIterator[str]:
    yield format_sse_event("connected", {"timestamp": _now_ms()})
    for _ in range(max_heartbeats):
        await asyncio.sleep(interval_seconds)
        yield format_sse_event("heartbeat", {"timestamp": _now_ms()})


def _now_ms() -> int:
    return int(time.time() * 1000)


INDEX_HTML = """
<!DOCTYPE html>
<html>
<head>
    <title>todoview</title>
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <style>
        body { font-family: Arial, sans-serif; max-width: 800px; margin: 40px auto; padding: 0 20px; color: #202020; }
        .hidden { display: none; }
        .error { color: #d1453b; margin: 10px 0; }
        .project { margin: 24px 0; }
        .project h2 { display: flex; align-items: center; gap: 8px; font-size: 1.1em; }
        .dot { width: 10px; height: 10px; border-radius: 50%; display: inline-block; }
        .count { color: #808080; font-size: 0.8em; font-weight: normal; }
        .section-name { font-weight: bold; margin: 12px 0 4px; border-bottom: 1px solid #eee; }
        ul { list-style: none; padding-left: 20px; margin: 0; }
        li { padding: 4px 0; }
        .done > .content { text-decoration: line-through; color: #808080; }
        .meta { font-size: 0.8em; margin-left: 6px; }
        .label { color: #808080; font-size: 0.8em; margin-left: 6px; }
    </style>
</head>
<body>
    <h1>todoview</h1>
    <form id="login" class="hidden" onsubmit="login(event)">
        <input id="password" type="password" placeholder="Password" autofocus>
        <button type="submit">Log in</button>
    </form>
    <div id="status" class="error"></div>
    <div id="projects"></div>

    <script>
        const POLL_INTERVAL = 30000;
        let pollTimer = null;

        function esc(text) {
            const div = document.createElement('div');
            div.textContent = text || '';
            return div.innerHTML;
        }

        async function login(event) {
            event.preventDefault();
            const response = await fetch('/api/auth/login', {
                method: 'POST',
                headers: { 'Content-Type': 'application/json' },
                body: JSON.stringify({ password: document.getElementById('password').value }),
            });
            const data = await response.json();
            if (!response.ok) {
                document.getElementById('status').textContent = data.detail || response.statusText;
                return;
            }
            localStorage.setItem('token', data.token);
            start();
        }

        function start() {
            document.getElementById('login').classList.add('hidden');
            fetchTasks();
            pollTimer = setInterval(fetchTasks, POLL_INTERVAL);
        }

        function logout() {
            localStorage.removeItem('token');
            clearInterval(pollTimer);
            document.getElementById('projects').innerHTML = '';
            document.getElementById('login').classList.remove('hidden');
        }

        async function fetchTasks() {
            const status = document.getElementById('status');
            try {
                const response = await fetch('/api/tasks', {
                    headers: { 'Authorization': 'Bearer ' + localStorage.getItem('token') },
                });
                if (response.status === 401) { logout(); return; }
                const data = await response.json();
                if (!response.ok) { throw new Error(data.detail || response.statusText); }
                localStorage.setItem('tasks', JSON.stringify(data));
                status.textContent = data.stale ? 'Showing older data. ' + (data.error || '') : '';
                render(data);
            } catch (error) {
                const cached = localStorage.getItem('tasks');
                if (cached) { render(JSON.parse(cached)); }
                status.textContent = (cached ? 'Using cached data. ' : '') + error.message;
            }
        }

        function renderTasks(tasks) {
            let html = '';
            tasks.forEach(task => {
                const visible = !task.checked || task.isRecentlyCompleted;
                const children = task.subtasks.length ? '<ul>' + renderTasks(task.subtasks) + '</ul>' : '';
                if (!visible) { html += children ? '<li>' + children + '</li>' : ''; return; }
                const labels = task.labels.map(l => '<span class="label">@' + esc(l) + '</span>').join('');
                const due = task.due_label
                    ? '<span class="meta" style="color:' + task.due_color + '">' + esc(task.due_label) + '</span>' : '';
                html += '<li class="' + (task.checked ? 'done' : '') + '">'
                    + '<span title="' + task.priority_label + '" style="color:' + task.priority_color + '">&#9675;</span> '
                    + '<span class="content">' + esc(task.content) + '</span>' + due + labels
                    + children + '</li>';
            });
            return html;
        }

        function render(data) {
            let html = '';
            data.projects.forEach(project => {
                html += '<div class="project"><h2><span class="dot" style="background:' + project.color_hex + '"></span>'
                    + esc(project.name) + ' <span class="count">' + project.task_count + ' tasks</span></h2>';
                project.sections.forEach(section => {
                    if (!section.name && section.tasks.length === 0) return;
                    if (section.name) {
                        html += '<div class="section-name">' + esc(section.name)
                            + ' <span class="count">' + section.task_count + '</span></div>';
                    }
                    html += section.tasks.length ? '<ul>' + renderTasks(section.tasks) + '</ul>' : '<div class="count">No tasks</div>';
                });
                html += '</div>';
            });
            document.getElementById('projects').innerHTML = html;
        }

        if (localStorage.getItem('token')) { start(); } else { logout(); }
    </script>
</body>
</html>
"""


app = create_app()
