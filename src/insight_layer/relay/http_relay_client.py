"""
HTTP client for the kanban AI relay.

Talks to the relay's two JSON endpoints:
- POST {base_url}/api/openai/generate-clusters
- POST {base_url}/api/openai/check-duplicates
"""

import asyncio
import json
import time
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar

import aiohttp
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from api_specs.dtos.board import (
    Card,
    CheckDuplicatesRequest,
    CheckDuplicatesResponse,
    GenerateClustersRequest,
    GenerateClustersResponse,
)
from core.observation.logger import get_logger
from insight_layer.config import InsightConfig
from insight_layer.errors import CollaboratorError
from insight_layer.relay.protocol import ClusterRelay
from insight_layer.types import BatchInfo, Cluster, DuplicateMatch, DuplicateResult

logger = get_logger(__name__)

GENERATE_CLUSTERS_PATH = "/api/openai/generate-clusters"
CHECK_DUPLICATES_PATH = "/api/openai/check-duplicates"

ResponseT = TypeVar("ResponseT", bound=BaseModel)


class HttpRelayClient(ClusterRelay):
    """
    aiohttp-based relay collaborator.

    A session passed in by the caller is reused and left open; otherwise a
    short-lived session is opened per request.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:3100",
        timeout_seconds: float = 600,
        max_retries: int = 1,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Args:
            base_url: Relay base URL, without the /api/openai suffix
            timeout_seconds: Total timeout for one HTTP request
            max_retries: Attempts per request for transport errors; HTTP
                error statuses are never retried
            session: Optional shared aiohttp session
        """
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.max_retries = max(1, max_retries)
        self._session = session

    @classmethod
    def from_config(
        cls, config: InsightConfig, session: Optional[aiohttp.ClientSession] = None
    ) -> "HttpRelayClient":
        return cls(
            base_url=config.relay_base_url,
            timeout_seconds=config.request_timeout_seconds,
            max_retries=config.max_retries,
            session=session,
        )

    async def request_clusters(
        self,
        batch: Sequence[Card],
        existing_cluster_names: Sequence[str],
        batch_info: BatchInfo,
    ) -> List[Cluster]:
        request = GenerateClustersRequest(
            cards=list(batch),
            existing_clusters=list(existing_cluster_names),
            batch_info=batch_info.to_dict(),
        )
        response = await self._post(
            GENERATE_CLUSTERS_PATH,
            request.model_dump(by_alias=True, exclude_none=True),
            GenerateClustersResponse,
        )
        return [Cluster.from_payload(payload) for payload in response.clusters]

    async def request_duplicates(
        self, new_card: Card, existing_cards: Sequence[Card]
    ) -> DuplicateResult:
        request = CheckDuplicatesRequest(
            new_card=new_card, existing_cards=list(existing_cards)
        )
        response = await self._post(
            CHECK_DUPLICATES_PATH,
            request.model_dump(by_alias=True, exclude_none=True),
            CheckDuplicatesResponse,
        )
        return DuplicateResult(
            duplicates=tuple(DuplicateMatch.from_payload(d) for d in response.duplicates)
        )

    async def _post(
        self, path: str, body: Dict[str, Any], response_model: Type[ResponseT]
    ) -> ResponseT:
        url = f"{self.base_url}{path}"
        start_time = time.perf_counter()
        for attempt in range(1, self.max_retries + 1):
            try:
                status, text = await self._send(url, body)
                break
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                logger.warning(
                    "Relay request to %s failed (attempt %d/%d): %r",
                    path,
                    attempt,
                    self.max_retries,
                    e,
                )
                if attempt == self.max_retries:
                    raise CollaboratorError(f"Request failed: {e!r}", endpoint=path) from e

        elapsed = time.perf_counter() - start_time
        logger.debug("Relay %s answered %d in %.2fs", path, status, elapsed)

        if not 200 <= status < 300:
            raise CollaboratorError(
                f"Relay returned HTTP {status}: {_excerpt(text)}",
                endpoint=path,
                status=status,
            )
        try:
            data = json.loads(text)
        except ValueError as e:
            raise CollaboratorError(
                f"Relay response is not JSON: {_excerpt(text)}", endpoint=path, status=status
            ) from e
        try:
            return response_model.model_validate(data)
        except PydanticValidationError as e:
            raise CollaboratorError(
                f"Unexpected relay response shape: {e}", endpoint=path, status=status
            ) from e

    async def _send(self, url: str, body: Dict[str, Any]) -> tuple:
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        if self._session is not None:
            async with self._session.post(url, json=body, timeout=timeout) as response:
                return response.status, await response.text()
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.post(url, json=body) as response:
                return response.status, await response.text()

    def __repr__(self) -> str:
        return f"HttpRelayClient(base_url={self.base_url})"


def _excerpt(text: str, limit: int = 200) -> str:
    return text if len(text) <= limit else text[:limit] + "..."
