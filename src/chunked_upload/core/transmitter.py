"""Transmitters send the bytes of one chunk to the remote endpoint."""

import logging
from abc import ABC, abstractmethod
from threading import Event
from typing import Dict, Optional

import requests

from .exceptions import (
    FatalTransmissionError,
    TransientTransmissionError,
    UploadCancelledError,
)
from .models import Chunk, ChunkMetadata

logger = logging.getLogger(__name__)


class ChunkTransmitter(ABC):
    """Sends a single chunk and reports success by returning normally.

    ``transmit`` raises :class:`TransientTransmissionError` for failures worth
    retrying, :class:`FatalTransmissionError` for explicit rejections and
    :class:`UploadCancelledError` when ``cancel_event`` is set.
    """

    @abstractmethod
    def transmit(
        self,
        chunk: Chunk,
        data: bytes,
        metadata: ChunkMetadata,
        cancel_event: Event,
    ) -> None:
        """Send one chunk."""

    def cancel(self) -> None:
        """Ask in-flight transmissions to stop. No-op by default."""


class HttpChunkTransmitter(ChunkTransmitter):
    """POST each chunk as a multipart form to an HTTP endpoint."""

    # Status codes that mean "try again", everything else non-2xx is fatal
    RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504, 524})

    def __init__(
        self,
        endpoint_url: str,
        *,
        method: str = "POST",
        timeout: float = 60.0,
        headers: Optional[Dict[str, str]] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialize the transmitter.

        Args:
            endpoint_url: URL that receives the chunks
            method: HTTP verb used for every chunk
            timeout: Per-request timeout in seconds
            headers: Extra headers sent with every request
            session: Pre-configured requests session (one is created if omitted)
        """
        if not endpoint_url:
            raise ValueError("endpoint_url is required")
        self.endpoint_url = endpoint_url
        self.method = method
        self.timeout = timeout
        self.session = session or requests.Session()
        if headers:
            self.session.headers.update(headers)

    def transmit(
        self,
        chunk: Chunk,
        data: bytes,
        metadata: ChunkMetadata,
        cancel_event: Event,
    ) -> None:
        if cancel_event.is_set():
            raise UploadCancelledError()

        try:
            response = self.session.request(
                self.method,
                self.endpoint_url,
                files={"file": (metadata.session_key, data, "application/octet-stream")},
                data=metadata.as_form_fields(),
                timeout=self.timeout,
            )
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            if cancel_event.is_set():
                raise UploadCancelledError() from e
            raise TransientTransmissionError(
                f"Chunk {chunk.index}: request failed: {e}"
            ) from e
        except requests.exceptions.RequestException as e:
            if cancel_event.is_set():
                raise UploadCancelledError() from e
            raise FatalTransmissionError(f"Chunk {chunk.index}: {e}") from e

        # The response may land after cancel() was requested
        if cancel_event.is_set():
            raise UploadCancelledError()

        if response.ok:
            logger.debug(f"Chunk {chunk.index}: endpoint replied {response.status_code}")
            return

        reason = f"Chunk {chunk.index}: endpoint replied {response.status_code}"
        if response.status_code in self.RETRYABLE_STATUS_CODES:
            raise TransientTransmissionError(reason, response.status_code)
        logger.error(f"{reason}: {response.text[:200]}")
        raise FatalTransmissionError(reason, response.status_code)

    def cancel(self) -> None:
        """Close pooled connections so no new request reuses them."""
        self.session.close()
