import hashlib
import hmac
import json
from typing import Any, Dict, Optional

from fastapi import BackgroundTasks, FastAPI, HTTPException, Request

from .logger_config import get_logger
from .orchestrator import EventOrchestrator

logger = get_logger(__name__)

LEGACY_WEBHOOK_PATH = "/webhooks"


def verify_github_signature(payload: bytes, secret: str, signature: Optional[str]) -> None:
    if not signature:
        raise HTTPException(status_code=403, detail="Missing signature")

    # Signature format: sha256=<hex digest>
    algorithm, _, signature_hash = signature.partition("=")
    if algorithm != "sha256" or not signature_hash:
        raise HTTPException(status_code=403, detail="Invalid signature format")

    mac = hmac.new(secret.encode(), msg=payload, digestmod=hashlib.sha256)
    if not hmac.compare_digest(mac.hexdigest(), signature_hash):
        raise HTTPException(status_code=403, detail="Invalid signature")


def create_app(orchestrator: EventOrchestrator, webhook_secret: Optional[str] = None, webhook_path: str = "/api/webhook") -> FastAPI:
    app = FastAPI(title="Python Autofix Pro")

    @app.get("/")
    async def root() -> Dict[str, str]:
        return {"status": "running", "service": "python-autofix-pro"}

    @app.get("/health")
    async def health() -> Dict[str, str]:
        return {"status": "ok"}

    async def github_hook(request: Request, background_tasks: BackgroundTasks) -> Dict[str, str]:
        event_type = request.headers.get("X-GitHub-Event")
        body = await request.body()

        if webhook_secret:
            verify_github_signature(body, webhook_secret, request.headers.get("X-Hub-Signature-256"))

        try:
            payload: Any = json.loads(body or b"{}")
        except ValueError:
            # JSONDecodeError and UnicodeDecodeError (non UTF-8 bodies)
            raise HTTPException(status_code=400, detail="Invalid JSON payload")
        if not isinstance(payload, dict):
            raise HTTPException(status_code=400, detail="Invalid JSON payload")

        delivery = request.headers.get("X-GitHub-Delivery", "-")
        logger.debug(f"Received {event_type} delivery {delivery}")
        background_tasks.add_task(orchestrator.handle_event, event_type, payload)
        return {"status": "received"}

    paths = [webhook_path]
    if webhook_path != LEGACY_WEBHOOK_PATH:
        paths.append(LEGACY_WEBHOOK_PATH)
    for path in paths:
        app.add_api_route(path, github_hook, methods=["POST"])

    return app
