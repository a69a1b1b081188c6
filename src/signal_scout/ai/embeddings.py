"""Text embeddings via the Vertex AI prediction endpoint.

The rest of the package only relies on the ``Embedder`` protocol
(``async embed(text) -> list[float]``); ``VertexEmbedder`` is the production
implementation.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import json
import logging
import os
import time
from typing import Protocol

import google.auth
import httpx
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from signal_scout.config import Settings, settings
from signal_scout.errors import EmbeddingError
from signal_scout.models import Signal

logger = logging.getLogger(__name__)

_SCOPES = ["https://www.googleapis.com/auth/cloud-platform"]


class Embedder(Protocol):
    async def embed(self, text: str) -> list[float]: ...


class VertexEmbedder:
    def __init__(self, config: Settings = settings, client: httpx.AsyncClient | None = None):
        self._config = config
        self._client = client
        self._credentials = None

    @property
    def endpoint(self) -> str:
        cfg = self._config
        return (
            f"https://{cfg.google_cloud_location}-aiplatform.googleapis.com/v1/"
            f"projects/{cfg.google_cloud_project_id}/locations/{cfg.google_cloud_location}/"
            f"publishers/google/models/{cfg.embedding_model}:predict"
        )

    def _load_credentials(self):
        """Credentials from a key file path, inline JSON, base64 JSON, or ADC."""
        raw = self._config.google_application_credentials.strip()
        if not raw:
            credentials, _ = google.auth.default(scopes=_SCOPES)
            return credentials
        if os.path.exists(raw):
            return service_account.Credentials.from_service_account_file(raw, scopes=_SCOPES)

        try:
            info = json.loads(raw)
        except json.JSONDecodeError:
            try:
                info = json.loads(base64.b64decode(raw, validate=True).decode("utf-8"))
            except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
                raise EmbeddingError(
                    "GOOGLE_APPLICATION_CREDENTIALS is neither a file path, JSON, nor base64 JSON"
                ) from e

        for required in ("client_email", "private_key"):
            if required not in info:
                raise EmbeddingError(f"Service account credentials missing {required}")
        return service_account.Credentials.from_service_account_info(info, scopes=_SCOPES)

    def _access_token(self) -> str:
        if self._credentials is None:
            self._credentials = self._load_credentials()
        if not self._credentials.valid:
            self._credentials.refresh(Request())
        return self._credentials.token

    async def embed(self, text: str) -> list[float]:
        if not self._config.google_cloud_project_id:
            raise EmbeddingError("GOOGLE_CLOUD_PROJECT_ID not configured")

        start = time.monotonic()
        try:
            token = await asyncio.to_thread(self._access_token)
        except EmbeddingError:
            raise
        except Exception as e:
            raise EmbeddingError(f"Failed to obtain Google credentials: {e}") from e

        payload = {"instances": [{"content": text}]}
        headers = {"Authorization": f"Bearer {token}"}
        try:
            if self._client is not None:
                resp = await self._client.post(self.endpoint, json=payload, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=30) as client:
                    resp = await client.post(self.endpoint, json=payload, headers=headers)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as e:
            raise EmbeddingError(f"Embedding request failed: {e}") from e

        try:
            values = data["predictions"][0]["embeddings"]["values"]
        except (KeyError, IndexError, TypeError):
            raise EmbeddingError("No embedding found in response") from None

        logger.debug(
            "Embedding generated: %d dims in %.0fms",
            len(values),
            (time.monotonic() - start) * 1000,
        )
        return [float(v) for v in values]


async def generate_batch_embeddings(
    embedder: Embedder,
    texts: list[str],
    batch_size: int = 5,
    delay_secs: float = 2.0,
) -> list[list[float]]:
    """Embed ``texts`` in order, ``batch_size`` at a time.

    Requests inside a batch run concurrently; batches are separated by
    ``delay_secs``. Any failure aborts the whole operation.
    """
    if not texts:
        return []

    start = time.monotonic()
    total_batches = (len(texts) + batch_size - 1) // batch_size
    logger.info("Generating %d embeddings in %d batches", len(texts), total_batches)

    embeddings: list[list[float]] = []
    for i in range(0, len(texts), batch_size):
        batch = texts[i : i + batch_size]
        batch_number = i // batch_size + 1
        try:
            results = await asyncio.gather(*(embedder.embed(t) for t in batch))
        except Exception:
            logger.error("Embedding batch %d/%d failed", batch_number, total_batches)
            raise
        embeddings.extend(results)
        logger.debug("Embedding batch %d/%d done", batch_number, total_batches)

        if i + batch_size < len(texts):
            await asyncio.sleep(delay_secs)

    logger.info(
        "Generated %d embeddings in %.1fs", len(embeddings), time.monotonic() - start
    )
    return embeddings


def prepare_text_for_embedding(signal: Signal) -> str:
    # Title repeated to weight it above the body.
    parts = [f"Title: {signal.title}", f"Title: {signal.title}"]
    if signal.body:
        parts.append(f"Content: {signal.body[:500]}")
    if signal.tags:
        parts.append(f"Tags: {', '.join(signal.tags)}")
    parts.append(f"Platform: {signal.platform.value}")
    return " | ".join(parts)
