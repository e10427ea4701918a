"""
Deck relay - forwards deck requests to the conversion backend.

The backend answers a conversion request with a ``download_url``; the relay
fetches that file and streams it back as the response body, so the client
only ever makes one request.
"""

import logging
from typing import Optional

import aiohttp
from aiohttp import web

from .config import Config
from .deck.client import decode_error_message
from .utils.helpers import safe_filename
from .utils.logger import setup_logger

logger = logging.getLogger(__name__)

BACKEND_URL_KEY = web.AppKey("backend_url", str)
SESSION_KEY = web.AppKey("session", aiohttp.ClientSession)


def _json_error(status: int, message: str) -> web.Response:
    return web.json_response({"error": message}, status=status)


async def handle_deck(request: web.Request) -> web.Response:
    """Convert a deck payload into a package download."""
    if request.method != "POST":
        return _json_error(405, "Method not allowed")

    try:
        payload = await request.json()
    except ValueError:
        return _json_error(400, "Invalid JSON body")

    session = request.app[SESSION_KEY]
    try:
        async with session.post(request.app[BACKEND_URL_KEY], json=payload) as response:
            if response.status >= 400:
                message = decode_error_message(await response.read(), fields=("error",))
                return _json_error(response.status, message or f"Backend error {response.status}")
            data = await response.json(content_type=None)

        download_url = data.get("download_url") if isinstance(data, dict) else None
        if not download_url:
            return _json_error(500, "No download URL in response")

        async with session.get(download_url) as file_response:
            if file_response.status >= 400:
                return _json_error(file_response.status, "Could not download deck file")
            content = await file_response.read()
    except ValueError:
        return _json_error(502, "Backend returned invalid JSON")
    except aiohttp.ClientError as e:
        logger.error("Backend request failed: %s", e)
        return _json_error(502, str(e) or "Internal server error")

    deck_name = payload.get("deck_name") if isinstance(payload, dict) else None
    filename = f"{safe_filename(deck_name or '', Config.DEFAULT_PACKAGE_NAME)}.apkg"
    logger.info("Relayed %s (%d bytes)", filename, len(content))
    return web.Response(
        body=content,
        content_type="application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


async def _session_context(app: web.Application):
    timeout = aiohttp.ClientTimeout(total=Config.DECK_SERVICE_TIMEOUT * 2)
    app[SESSION_KEY] = aiohttp.ClientSession(timeout=timeout)
    yield
    await app[SESSION_KEY].close()


def create_app(backend_url: Optional[str] = None) -> web.Application:
    """
    Build the relay application.

    Args:
        backend_url: Conversion endpoint (defaults to Config.DECK_BACKEND_URL)
    """
    app = web.Application()
    app[BACKEND_URL_KEY] = backend_url or Config.DECK_BACKEND_URL
    app.cleanup_ctx.append(_session_context)
    app.router.add_route("*", "/anki-proxy", handle_deck)
    return app


def main() -> None:
    """Run the relay server."""
    setup_logger()
    web.run_app(create_app(), host=Config.RELAY_HOST, port=Config.RELAY_PORT)


if __name__ == "__main__":
    main()
