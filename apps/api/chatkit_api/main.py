"""FastAPI application serving the property-analysis ChatKit widget."""
from __future__ import annotations

import base64
import html
import json
import logging
import os

os.environ.setdefault("GRPC_VERBOSITY", "ERROR")
os.environ.setdefault("GRPC_TRACE", "")

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse, Response

from .core.config import Settings, get_settings, settings
from .routers import chat as chat_router
from .routers import chatkit as chatkit_router
from .routers import realtime as realtime_router
from .services.context import MetadataDecodeError, decode_metadata_param, format_metadata_as_context

logger = logging.getLogger(__name__)

app = FastAPI(title="KELL ChatKit API", version="0.1.0")

if settings.cors_allow_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(chatkit_router.router, prefix="/api", tags=["chatkit"])
app.include_router(realtime_router.router, prefix="/api", tags=["voice"])
app.include_router(chat_router.router, prefix="/api", tags=["chat"])

CHATKIT_SCRIPT_URL = "https://cdn.openai.com/chatkit/chatkit.js"

ERROR_PAGE = """<!DOCTYPE html>
<html lang=\"fr\">
<head>
    <meta charset=\"UTF-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1.0\" />
    <title>Assistant investissement</title>
</head>
<body style=\"margin:0;font-family:system-ui,sans-serif;\">
    <div style=\"display:flex;justify-content:center;align-items:center;height:100vh;flex-direction:column;gap:20px;padding:20px;\">
        <div style=\"font-size:24px;color:#d32f2f;\">⚠️</div>
        <div style=\"font-size:18px;color:#666;\">__MESSAGE__</div>
        <div style=\"font-size:14px;color:#999;\">Vérifiez que les metadata sont correctement encodées dans l&apos;URL</div>
    </div>
</body>
</html>
"""

CHATKIT_PAGE = """<!DOCTYPE html>
<html lang=\"fr\">
<head>
    <meta charset=\"UTF-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1.0\" />
    <title>Assistant investissement</title>
</head>
<body style=\"margin:0;padding:0;font-family:system-ui,sans-serif;\">
    <div id=\"loading\" style=\"display:flex;justify-content:center;align-items:center;height:100vh;font-size:18px;color:#666;\">Chargement du ChatKit...</div>
    <div id=\"error\" style=\"display:none;justify-content:center;align-items:center;height:100vh;flex-direction:column;gap:20px;padding:20px;\">
        <div style=\"font-size:24px;color:#d32f2f;\">⚠️</div>
        <div id=\"errorMessage\" style=\"font-size:18px;color:#666;\"></div>
    </div>
    <div style=\"width:100vw;height:100vh;\">
        <div id=\"chatkit-container\" style=\"width:100%;height:100%;\"></div>
    </div>

    <script>
        const CONTEXT_MESSAGE = __CONTEXT_JSON__;
        const WORKFLOW_ID = __WORKFLOW_JSON__;

        function showError(message) {
            document.getElementById('loading').style.display = 'none';
            document.getElementById('errorMessage').textContent = message;
            document.getElementById('error').style.display = 'flex';
        }

        async function initializeChatKit() {
            try {
                const body = { chatkit_configuration: { file_upload: { enabled: true } } };
                if (WORKFLOW_ID) {
                    body.workflow = { id: WORKFLOW_ID };
                }

                const response = await fetch('/api/create-session', {
                    method: 'POST',
                    headers: { 'Content-Type': 'application/json' },
                    credentials: 'same-origin',
                    body: JSON.stringify(body),
                });
                if (!response.ok) {
                    throw new Error('Erreur session: ' + response.statusText);
                }
                const session = await response.json();

                const chatKitScript = document.createElement('script');
                chatKitScript.src = '__SCRIPT_URL__';
                chatKitScript.async = true;
                chatKitScript.onload = () => {
                    document.getElementById('loading').style.display = 'none';
                    if (!window.ChatKit) {
                        showError('Erreur lors du chargement du script ChatKit');
                        return;
                    }
                    window.ChatKit.create({
                        clientSecret: session.client_secret,
                        container: document.getElementById('chatkit-container'),
                        initialMessage: CONTEXT_MESSAGE,
                        onReady: () => console.log('[ChatKit] widget ready'),
                        onError: (err) => {
                            console.error('[ChatKit] widget error:', err);
                            showError('Erreur lors du chargement du chat');
                        },
                    });
                };
                chatKitScript.onerror = () => showError('Erreur lors du chargement du script ChatKit');
                document.body.appendChild(chatKitScript);
            } catch (error) {
                console.error('[ChatKit] initialisation failed:', error);
                showError("Erreur lors de l'initialisation du chat");
            }
        }

        initializeChatKit();
    </script>
</body>
</html>
"""


def _script_literal(value: object) -> str:
    """Serialize a value for safe inclusion inside an inline script."""

    return json.dumps(value, ensure_ascii=False).replace("</", "<\\/")


def render_error_page(message: str) -> str:
    return ERROR_PAGE.replace("__MESSAGE__", html.escape(message))


def render_chatkit_page(context: str, workflow_id: str | None) -> str:
    return (
        CHATKIT_PAGE.replace("__CONTEXT_JSON__", _script_literal(context))
        .replace("__WORKFLOW_JSON__", _script_literal(workflow_id or None))
        .replace("__SCRIPT_URL__", CHATKIT_SCRIPT_URL)
    )


@app.get("/chatkit", response_class=HTMLResponse, tags=["chatkit"])
async def chatkit_page(
    metadata: str | None = None,
    app_settings: Settings = Depends(get_settings),
) -> HTMLResponse:
    """Serve the chat widget primed with the property analysis from the URL."""

    if not metadata:
        return HTMLResponse(render_error_page("Aucune métadonnée fournie"), status_code=400)

    try:
        decoded = decode_metadata_param(metadata)
    except MetadataDecodeError as exc:
        logger.warning("[chatkit] could not decode metadata: %s", exc)
        return HTMLResponse(render_error_page("Erreur lors du chargement des données"), status_code=400)

    context = format_metadata_as_context(decoded)
    if app_settings.debug_logging_enabled:
        logger.info("[chatkit] formatted context:\n%s", context)
    return HTMLResponse(render_chatkit_page(context, app_settings.chatkit_workflow_id))


@app.get("/", include_in_schema=False)
async def index(request: Request) -> RedirectResponse:
    """Send bare links to the widget page, keeping the query string."""

    target = "/chatkit"
    if request.url.query:
        target = f"{target}?{request.url.query}"
    return RedirectResponse(target, status_code=307)


@app.head("/", tags=["meta"])
async def index_head() -> Response:
    """Fast health checks issue HEAD /; answer with 200 to avoid noisy 405s."""

    return Response(status_code=200)


FAVICON_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR4nGMAAQAABQABDQottAAAAABJRU5ErkJggg=="
)


@app.get("/api/health", tags=["meta"])
async def health() -> dict[str, str]:
    """Simple liveness check."""

    return {"status": "ok"}


@app.head("/api/health", tags=["meta"])
async def health_head() -> Response:
    return Response(status_code=200)


@app.get("/robots.txt", response_class=PlainTextResponse, include_in_schema=False)
async def robots() -> PlainTextResponse:
    return PlainTextResponse("User-agent: *\nDisallow:")


@app.get("/favicon.ico", include_in_schema=False)
async def favicon() -> Response:
    """Return a tiny placeholder favicon."""

    return Response(content=FAVICON_BYTES, media_type="image/png")
