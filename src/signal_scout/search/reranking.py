"""Semantic reranker inference endpoint (Vertex AI ranker hosted through Elasticsearch)."""

import base64
import binascii
import json
import logging

from elasticsearch import AsyncElasticsearch, NotFoundError

from signal_scout.config import Settings, settings

logger = logging.getLogger(__name__)


class RerankerEndpoint:
    def __init__(self, client: AsyncElasticsearch, config: Settings = settings):
        self._client = client
        self._config = config
        self.inference_id = config.reranker_inference_id

    async def exists(self) -> bool:
        try:
            await self._client.inference.get(inference_id=self.inference_id)
        except NotFoundError:
            return False
        return True

    def _service_account_json(self) -> str:
        raw = self._config.google_application_credentials.strip()
        if not raw:
            raise RuntimeError("GOOGLE_APPLICATION_CREDENTIALS is required for reranking")
        if raw.startswith("{"):
            candidate = raw
        else:
            try:
                with open(raw, encoding="utf-8") as f:
                    candidate = f.read()
            except OSError:
                try:
                    candidate = base64.b64decode(raw, validate=True).decode("utf-8")
                except (binascii.Error, UnicodeDecodeError) as e:
                    raise RuntimeError(
                        "GOOGLE_APPLICATION_CREDENTIALS must be a path, JSON or base64 JSON"
                    ) from e
        try:
            json.loads(candidate)
        except json.JSONDecodeError as e:
            raise RuntimeError("GOOGLE_APPLICATION_CREDENTIALS is not valid JSON") from e
        return candidate

    async def create(self) -> None:
        if not self._config.google_cloud_project_id:
            raise RuntimeError("GOOGLE_CLOUD_PROJECT_ID is required for reranking")
        await self._client.inference.put(
            inference_id=self.inference_id,
            task_type="rerank",
            inference_config={
                "service": "googlevertexai",
                "service_settings": {
                    "service_account_json": self._service_account_json(),
                    "project_id": self._config.google_cloud_project_id,
                    "model_id": self._config.reranker_model_id,
                },
            },
        )
        logger.info("Created reranker endpoint '%s'", self.inference_id)

    async def ensure(self) -> bool:
        """Make sure the endpoint exists, creating it if needed. Returns availability."""
        if await self.exists():
            return True
        await self.create()
        return await self.exists()

    async def delete(self) -> None:
        try:
            await self._client.inference.delete(inference_id=self.inference_id)
        except NotFoundError:
            return
        logger.info("Deleted reranker endpoint '%s'", self.inference_id)
