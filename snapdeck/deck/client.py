"""Deck service client - send cards to the packaging service, save the .apkg."""

import asyncio
import json
import logging
import os
import uuid
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import aiofiles
import aiohttp

from ..config import Config
from ..errors import DeckErrorKind, DeckServiceError
from ..models import CardEntry
from ..utils.helpers import ensure_dir, safe_filename

logger = logging.getLogger(__name__)


STATUS_KINDS = {
    400: DeckErrorKind.BAD_REQUEST,
    413: DeckErrorKind.PAYLOAD_TOO_LARGE,
    415: DeckErrorKind.UNSUPPORTED_MEDIA_TYPE,
    429: DeckErrorKind.RATE_LIMITED,
    500: DeckErrorKind.SERVER_ERROR,
}


def build_payload(entries: Sequence[CardEntry], deck_name: Optional[str] = None) -> Dict[str, Any]:
    """
    Build the JSON body for the deck service.

    Every entry is included whatever its ``selected`` flag; callers filter
    beforehand. Fronts are keys, so a later entry with the same front
    replaces an earlier one.

    Args:
        entries: Card entries to send
        deck_name: Deck name, Config.DEFAULT_DECK_NAME when empty

    Returns:
        {"deck_name": str, "vocabulary": {front: back}}
    """
    vocabulary: Dict[str, str] = {}
    for entry in entries:
        front, back = entry.card_pair()
        vocabulary[front.strip()] = back.strip()

    return {
        "deck_name": deck_name or Config.DEFAULT_DECK_NAME,
        "vocabulary": vocabulary,
    }


def decode_error_message(body: Optional[bytes], fields: Sequence[str] = ("error", "message")) -> Optional[str]:
    """Extract ``error`` / ``message`` from a JSON error body, if there is one."""
    if not body:
        return None
    try:
        data = json.loads(body.decode('utf-8'))
    except ValueError:  # includes UnicodeDecodeError
        return None
    if not isinstance(data, dict):
        return None
    for field in fields:
        value = data.get(field)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def classify_response(status: int, body: Optional[bytes]) -> DeckServiceError:
    """
    Classify an HTTP error response.

    A structured error body wins over the status code; the status table is
    only consulted when the body carries no message.
    """
    message = decode_error_message(body)
    if message:
        return DeckServiceError(DeckErrorKind.UNKNOWN, message, status=status)

    kind = STATUS_KINDS.get(status)
    if kind is not None:
        return DeckServiceError(kind, status=status)
    return DeckServiceError(
        DeckErrorKind.UNKNOWN, f"{DeckErrorKind.SERVER_ERROR.value} ({status})", status=status
    )


def classify_transport_error(exc: BaseException) -> DeckServiceError:
    """Classify a failure where no HTTP response was received."""
    if isinstance(exc, asyncio.TimeoutError):
        return DeckServiceError(DeckErrorKind.TIMEOUT)
    if isinstance(exc, (aiohttp.ServerDisconnectedError, aiohttp.ClientPayloadError)):
        return DeckServiceError(DeckErrorKind.NO_RESPONSE)
    if isinstance(exc, (aiohttp.ClientConnectorError, aiohttp.ClientOSError)):
        return DeckServiceError(DeckErrorKind.NETWORK_UNREACHABLE)
    return DeckServiceError(DeckErrorKind.UNKNOWN, str(exc) or DeckErrorKind.UNKNOWN.value)


class DeckServiceClient:
    """Talk to the deck relay with a pooled aiohttp session."""

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        output_dir: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize the client.

        Args:
            url: Relay endpoint (defaults to Config.DECK_SERVICE_URL)
            timeout: Total request timeout in seconds
            output_dir: Where packages are saved (defaults to Config.OUTPUT_DIR)
            session: Externally owned session; it is not closed by this client
        """
        self.url = url or Config.DECK_SERVICE_URL
        self.timeout = timeout or Config.DECK_SERVICE_TIMEOUT
        self.output_dir = Path(output_dir or Config.OUTPUT_DIR)
        self._session = session
        self._owns_session = session is None
        self._session_lock = asyncio.Lock()

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create a shared aiohttp session."""
        async with self._session_lock:
            if self._session is None or self._session.closed:
                self._session = aiohttp.ClientSession(
                    timeout=aiohttp.ClientTimeout(total=self.timeout)
                )
                self._owns_session = True
            return self._session

    async def close(self) -> None:
        """Close the aiohttp session if this client created it."""
        async with self._session_lock:
            if self._owns_session and self._session and not self._session.closed:
                await self._session.close()
                self._session = None

    async def __aenter__(self) -> "DeckServiceClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def package_path(self, deck_name: Optional[str]) -> Path:
        """File the package for `deck_name` is saved to."""
        stem = safe_filename(deck_name or "", Config.DEFAULT_PACKAGE_NAME)
        return self.output_dir / f"{stem}.apkg"

    async def submit_deck(self, entries: Sequence[CardEntry], deck_name: Optional[str] = None) -> Path:
        """
        Send entries to the deck service and save the returned package.

        Args:
            entries: Entries to include (already filtered to the selection)
            deck_name: Name of the deck and of the saved file

        Returns:
            Path of the saved .apkg file

        Raises:
            DeckServiceError: Classified failure
        """
        payload = build_payload(tuple(entries), deck_name)
        logger.info("Sending %d cards to %s", len(payload["vocabulary"]), self.url)

        session = await self._get_session()
        try:
            async with session.post(
                self.url,
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                body = await response.read()
                status = response.status
        except (asyncio.TimeoutError, aiohttp.ClientError) as e:
            error = classify_transport_error(e)
            logger.warning("Deck service request failed: %s (%s)", error.error_kind.name, e)
            raise error from e

        if status >= 400:
            error = classify_response(status, body)
            logger.warning("Deck service answered %d: %s", status, error.message)
            raise error

        # A 2xx reply can still carry a JSON error instead of the package
        message = decode_error_message(body, fields=("error",))
        if message is not None:
            raise DeckServiceError(DeckErrorKind.UNKNOWN, message, status=status)
        if not body:
            raise DeckServiceError(DeckErrorKind.UNKNOWN, "Failed to generate Anki deck", status=status)

        try:
            path = await self.save_package(body, deck_name)
        except OSError as e:
            raise DeckServiceError(DeckErrorKind.UNKNOWN, f"Could not save deck: {e}") from e
        logger.info("Saved %s (%d bytes)", path, len(body))
        return path

    async def save_package(self, content: bytes, deck_name: Optional[str] = None) -> Path:
        """Write package bytes atomically to the output directory."""
        output_path = self.package_path(deck_name)
        ensure_dir(str(output_path.parent))

        # Atomic write: write to temp file, then rename
        temp_path = f"{output_path}.{uuid.uuid4().hex[:8]}.tmp"
        try:
            async with aiofiles.open(temp_path, 'wb') as f:
                await f.write(content)
            os.replace(temp_path, output_path)
        except OSError:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise
        return output_path
