"""Tests for the deck relay."""

import asyncio

import pytest
from aiohttp import test_utils, web

from snapdeck.deck import DeckServiceClient
from snapdeck.errors import DeckErrorKind, DeckServiceError
from snapdeck.models import VocabularyEntry
from snapdeck.relay import create_app

PACKAGE_BYTES = b"PK\x03\x04relayed-apkg"


def make_backend(convert=None, file_status=200):
    """Conversion backend: POST /convert returns a download_url served by GET /files/deck.apkg."""
    received = []

    async def default_convert(request):
        received.append(await request.json())
        return web.json_response({"download_url": str(request.url.with_path("/files/deck.apkg"))})

    async def download(request):
        if file_status >= 400:
            return web.Response(status=file_status)
        return web.Response(body=PACKAGE_BYTES, content_type="application/octet-stream")

    app = web.Application()
    app.router.add_post("/convert", convert or default_convert)
    app.router.add_get("/files/deck.apkg", download)
    return app, received


def with_relay(backend, scenario):
    """Run `scenario(client)` with a TestClient for a relay pointing at `backend`."""
    async def main():
        async with test_utils.TestServer(backend) as backend_server:
            relay = create_app(str(backend_server.make_url("/convert")))
            async with test_utils.TestClient(test_utils.TestServer(relay)) as client:
                return await scenario(client)
    return asyncio.run(main())


def test_relay_returns_package():
    backend, received = make_backend()

    async def scenario(client):
        response = await client.post("/anki-proxy", json={"deck_name": "Reise: Rom", "vocabulary": {"a": "b"}})
        return response.status, response.headers, await response.read()

    status, headers, body = with_relay(backend, scenario)
    assert status == 200
    assert body == PACKAGE_BYTES
    assert headers["Content-Type"] == "application/octet-stream"
    assert headers["Content-Disposition"] == 'attachment; filename="Reise_ Rom.apkg"'
    assert received == [{"deck_name": "Reise: Rom", "vocabulary": {"a": "b"}}]


def test_relay_default_file_name():
    backend, _ = make_backend()

    async def scenario(client):
        response = await client.post("/anki-proxy", json={"vocabulary": {}})
        return response.headers["Content-Disposition"]

    assert with_relay(backend, scenario) == 'attachment; filename="Anki-Cards.apkg"'


@pytest.mark.parametrize("method", ["GET", "PUT", "DELETE"])
def test_relay_rejects_other_methods(method):
    backend, received = make_backend()

    async def scenario(client):
        response = await client.request(method, "/anki-proxy")
        return response.status, await response.json()

    assert with_relay(backend, scenario) == (405, {"error": "Method not allowed"})
    assert received == []


def test_relay_rejects_invalid_json():
    backend, received = make_backend()

    async def scenario(client):
        response = await client.post("/anki-proxy", data=b"{not json", headers={"Content-Type": "application/json"})
        return response.status

    assert with_relay(backend, scenario) == 400
    assert received == []


def test_relay_missing_download_url():
    async def convert(request):
        return web.json_response({"status": "ok"})

    backend, _ = make_backend(convert)

    async def scenario(client):
        response = await client.post("/anki-proxy", json={"deck_name": "X", "vocabulary": {}})
        return response.status, await response.json()

    assert with_relay(backend, scenario) == (500, {"error": "No download URL in response"})


def test_relay_passes_backend_error_through():
    async def convert(request):
        return web.json_response({"error": "Too many cards"}, status=413)

    backend, _ = make_backend(convert)

    async def scenario(client):
        response = await client.post("/anki-proxy", json={"deck_name": "X", "vocabulary": {}})
        return response.status, await response.json()

    assert with_relay(backend, scenario) == (413, {"error": "Too many cards"})


def test_relay_download_failure():
    backend, _ = make_backend(file_status=404)

    async def scenario(client):
        response = await client.post("/anki-proxy", json={"deck_name": "X", "vocabulary": {}})
        return response.status

    assert with_relay(backend, scenario) == 404


def test_relay_backend_invalid_json():
    async def convert(request):
        return web.Response(text="<html>oops</html>")

    backend, _ = make_backend(convert)

    async def scenario(client):
        response = await client.post("/anki-proxy", json={"deck_name": "X", "vocabulary": {}})
        return response.status, await response.json()

    assert with_relay(backend, scenario) == (502, {"error": "Backend returned invalid JSON"})


# ═══════════════════════════════════════════════════════════════════════════════
# CLIENT THROUGH THE RELAY
# ═══════════════════════════════════════════════════════════════════════════════

def test_client_through_relay(tmp_path):
    backend, received = make_backend()

    async def scenario(client):
        url = str(client.make_url("/anki-proxy"))
        async with DeckServiceClient(url, output_dir=str(tmp_path)) as deck_client:
            return await deck_client.submit_deck([VocabularyEntry("Haus", "house")], "Deutsch")

    path = with_relay(backend, scenario)
    assert path.read_bytes() == PACKAGE_BYTES
    assert received == [{"deck_name": "Deutsch", "vocabulary": {"house": "Haus"}}]


def test_client_sees_relayed_error_message(tmp_path):
    async def convert(request):
        return web.json_response({"error": "Too many cards"}, status=413)

    backend, _ = make_backend(convert)

    async def scenario(client):
        url = str(client.make_url("/anki-proxy"))
        async with DeckServiceClient(url, output_dir=str(tmp_path)) as deck_client:
            await deck_client.submit_deck([VocabularyEntry("Haus", "house")], "Deutsch")

    with pytest.raises(DeckServiceError) as excinfo:
        with_relay(backend, scenario)
    assert excinfo.value.error_kind is DeckErrorKind.UNKNOWN
    assert excinfo.value.message == "Too many cards"


@pytest.mark.parametrize("status", [413, 429, 503])
def test_relay_keeps_status_of_non_json_backend_error(status):
    async def convert(request):
        return web.Response(status=status, text="<html>busy</html>", content_type="text/html")

    backend, _ = make_backend(convert)

    async def scenario(client):
        response = await client.post("/anki-proxy", json={"deck_name": "X", "vocabulary": {}})
        return response.status, await response.json()

    assert with_relay(backend, scenario) == (status, {"error": f"Backend error {status}"})


def test_client_sees_backend_status_through_relay(tmp_path):
    async def convert(request):
        return web.Response(status=413, text="<html>Request Entity Too Large</html>", content_type="text/html")

    backend, _ = make_backend(convert)

    async def scenario(client):
        url = str(client.make_url("/anki-proxy"))
        async with DeckServiceClient(url, output_dir=str(tmp_path)) as deck_client:
            await deck_client.submit_deck([VocabularyEntry("Haus", "house")], "Deutsch")

    with pytest.raises(DeckServiceError) as excinfo:
        with_relay(backend, scenario)
    assert excinfo.value.status == 413
    assert list(tmp_path.iterdir()) == []
