"""External collaborator contracts and the AI enrichment client.

Every call to an external collaborator goes through ``call_enricher``, which
returns a ``CollaboratorResult`` instead of raising. It is the one place
where collaborator failures are logged.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, Protocol, TypeVar, runtime_checkable

import httpx
from pydantic import ValidationError
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from ..models import EnrichmentBatch, EnrichmentResult, Grant, TokenUsage, UserProfile

logger = logging.getLogger(__name__)

T = TypeVar("T")

# 10s connect, 60s read; the overall call is also bounded by call_enricher's timeout
ENRICHMENT_TIMEOUT = httpx.Timeout(connect=10.0, read=60.0, write=10.0, pool=10.0)


class CollaboratorErrorKind(str, Enum):
    UNAVAILABLE = "unavailable"
    TIMEOUT = "timeout"
    ABORTED = "aborted"
    ERROR = "error"


@dataclass(frozen=True)
class CollaboratorError:
    kind: CollaboratorErrorKind
    collaborator: str
    message: str = ""


@dataclass(frozen=True)
class CollaboratorResult(Generic[T]):
    """Either a value or a CollaboratorError, never both."""

    value: Optional[T] = None
    error: Optional[CollaboratorError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "CollaboratorResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: CollaboratorErrorKind, collaborator: str, message: str = "") -> "CollaboratorResult[T]":
        return cls(error=CollaboratorError(kind=kind, collaborator=collaborator, message=message))


@runtime_checkable
class Enricher(Protocol):
    """Given a profile and grants, return fit explanations keyed by grant id."""

    async def enrich(self, profile: UserProfile, grants: List[Grant]) -> EnrichmentBatch:
        ...


def _collaborator_name(enricher: Any) -> str:
    return getattr(enricher, "name", None) or type(enricher).__name__


async def call_enricher(
    enricher: Optional[Enricher],
    profile: UserProfile,
    grants: List[Grant],
    timeout: Optional[float] = None,
    abort: Optional[asyncio.Event] = None,
) -> CollaboratorResult[EnrichmentBatch]:
    """Run ``enricher.enrich`` under a timeout and an optional abort signal.

    Never raises for collaborator failures. Cancellation of the caller itself
    still propagates.
    """
    if enricher is None:
        return CollaboratorResult.failure(CollaboratorErrorKind.UNAVAILABLE, "enricher", "no enricher configured")

    name = _collaborator_name(enricher)
    if not grants:
        return CollaboratorResult.success(EnrichmentBatch())
    if abort is not None and abort.is_set():
        logger.warning("collaborator_call collaborator=%s result=aborted count=%d duration_ms=0", name, len(grants))
        return CollaboratorResult.failure(CollaboratorErrorKind.ABORTED, name, "aborted before start")

    start = time.monotonic()
    task = asyncio.ensure_future(enricher.enrich(profile, grants))
    abort_task = asyncio.ensure_future(abort.wait()) if abort is not None else None
    waiters = {task} if abort_task is None else {task, abort_task}

    try:
        done, _ = await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        if abort_task is not None:
            abort_task.cancel()

    duration_ms = (time.monotonic() - start) * 1000

    if task not in done:
        task.cancel()
        kind = CollaboratorErrorKind.ABORTED if abort_task is not None and abort_task in done else CollaboratorErrorKind.TIMEOUT
        logger.warning(
            "collaborator_call collaborator=%s result=%s count=%d duration_ms=%.0f",
            name,
            kind.value,
            len(grants),
            duration_ms,
        )
        return CollaboratorResult.failure(kind, name, f"no response after {duration_ms:.0f}ms")

    try:
        batch = task.result()
        if not isinstance(batch, EnrichmentBatch):
            batch = EnrichmentBatch.model_validate(batch)
    except Exception as exc:
        logger.error(
            "collaborator_call collaborator=%s result=failure error=%s count=%d duration_ms=%.0f",
            name,
            exc,
            len(grants),
            duration_ms,
        )
        return CollaboratorResult.failure(CollaboratorErrorKind.ERROR, name, str(exc))

    logger.info(
        "collaborator_call collaborator=%s result=success count=%d enriched=%d total_tokens=%d duration_ms=%.0f",
        name,
        len(grants),
        len(batch.results),
        batch.usage.total_tokens,
        duration_ms,
    )
    return CollaboratorResult.success(batch)


def enrichment_retry():
    """Retry decorator for enrichment HTTP calls: 3 attempts, exponential backoff."""
    return retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((httpx.HTTPError, httpx.TimeoutException)),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


def _grant_payload(grant: Grant) -> Dict[str, Any]:
    return grant.model_dump(
        mode="json",
        include={
            "id", "title", "sponsor", "summary", "description", "categories", "eligibility",
            "locations", "funding_type", "purpose_tags", "amount_min", "amount_max",
            "amount_text", "deadline_date", "url",
        },
    )


def parse_enrichment_response(data: Any, requested_ids: List[str]) -> EnrichmentBatch:
    """Parse the service response, skipping invalid or unrequested entries.

    Accepts ``results`` as a mapping of grant id to result or as a list of
    results carrying ``grant_id``.
    """
    if not isinstance(data, dict):
        raise ValueError("Enrichment response is not a JSON object")

    raw_results = data.get("results") or {}
    if isinstance(raw_results, list):
        raw_results = {
            str(item.get("grant_id")): item for item in raw_results if isinstance(item, dict) and item.get("grant_id")
        }

    wanted = set(requested_ids)
    results: Dict[str, EnrichmentResult] = {}
    for grant_id, raw in raw_results.items():
        if grant_id not in wanted:
            logger.debug("Enrichment result for unrequested grant %s ignored", grant_id)
            continue
        try:
            results[grant_id] = EnrichmentResult.model_validate(raw)
        except ValidationError as exc:
            logger.warning("enrichment_result_invalid grant_id=%s errors=%d", grant_id, exc.error_count())

    usage_raw = data.get("usage") or {}
    try:
        usage = TokenUsage.model_validate(usage_raw)
    except ValidationError:
        usage = TokenUsage()
    return EnrichmentBatch(results=results, usage=usage)


class HttpEnricher:
    """Vendor-neutral enrichment client.

    POSTs ``{"profile": ..., "grants": [...]}`` to a fit-explanation service
    and expects ``{"results": {...}, "usage": {...}}`` back. Model choice and
    prompting live behind that service.
    """

    name = "http_enricher"

    def __init__(
        self,
        url: str,
        api_key: Optional[str] = None,
        timeout: httpx.Timeout = ENRICHMENT_TIMEOUT,
    ):
        """Initialize client.

        Args:
            url: Enrichment endpoint
            api_key: Sent as a bearer token when given
            timeout: httpx timeout per request
        """
        self.url = url
        self.api_key = api_key
        self.timeout = timeout

    async def enrich(self, profile: UserProfile, grants: List[Grant]) -> EnrichmentBatch:
        payload = {
            "profile": profile.model_dump(mode="json"),
            "grants": [_grant_payload(grant) for grant in grants],
        }
        data = await self._post(payload)
        return parse_enrichment_response(data, [grant.id for grant in grants])

    @enrichment_retry()
    async def _post(self, payload: Dict[str, Any]) -> Any:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        start = time.monotonic()
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(self.url, json=payload, headers=headers)
        duration_ms = (time.monotonic() - start) * 1000
        logger.info(
            "enrichment_request url=%s status=%d duration_ms=%.0f",
            self.url,
            response.status_code,
            duration_ms,
        )
        response.raise_for_status()
        return response.json()
