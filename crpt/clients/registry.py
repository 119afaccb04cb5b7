"""Registry document creation client."""
from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

import requests
from requests import Response

from crpt.config import DEFAULT_API_URL, DEFAULT_PRODUCT_GROUP, Settings
from crpt.documents import INTRODUCE_GOODS, Document, build_request_body
from crpt.errors import RegistryStatusError, RegistryTransportError
from crpt.rate_limit import SlidingWindowRateLimiter, TimeUnit

LOGGER = logging.getLogger(__name__)


class StaticTokenProvider:
    """Returns a fixed bearer token; real authentication is done elsewhere."""

    def __init__(self, token: str = "token") -> None:
        self._token = token

    def __call__(self) -> str:
        return self._token


class RegistryClient:
    """Submits documents to the registry, at most ``request_limit`` per ``time_unit``."""

    def __init__(
        self,
        time_unit: TimeUnit,
        request_limit: int,
        api_url: str = DEFAULT_API_URL,
        product_group: str = DEFAULT_PRODUCT_GROUP,
        *,
        token_provider: Optional[Callable[[], str]] = None,
        timeout_seconds: float = 30,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._limiter = SlidingWindowRateLimiter(request_limit, time_unit.seconds)
        self._api_url = api_url
        self._product_group = product_group
        self._token_provider = token_provider or StaticTokenProvider()
        self._timeout = timeout_seconds
        self._session = session or requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})

    @classmethod
    def from_settings(cls, settings: Settings) -> "RegistryClient":
        return cls(
            settings.rate_limit_unit,
            settings.rate_limit_requests,
            settings.api_url,
            settings.product_group,
            token_provider=StaticTokenProvider(settings.auth_token),
            timeout_seconds=settings.timeout_seconds,
        )

    @property
    def limiter(self) -> SlidingWindowRateLimiter:
        return self._limiter

    def create_document(
        self,
        document: Document,
        signature: str,
        product_group: Optional[str] = None,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> Response:
        """Wait for a rate limit slot, then post one document.

        Raises :class:`~crpt.errors.AcquireCancelled` if the wait is cancelled,
        :class:`RegistryTransportError` on I/O failure and
        :class:`RegistryStatusError` on a non-2xx answer. Nothing is retried.
        """

        group = product_group or self._product_group
        self._limiter.acquire(cancel)

        body = build_request_body(document, signature, INTRODUCE_GOODS)
        headers = {"Authorization": f"Bearer {self._token_provider()}"}
        try:
            response = self._session.post(
                self._api_url,
                params={"pg": group},
                data=body.encode("utf-8"),
                headers=headers,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            LOGGER.error(
                "registry request failed",
                extra={"product_group": group, "doc_id": document.doc_id},
            )
            raise RegistryTransportError("Failed to create document") from exc

        self._raise_for_status(response, group)
        LOGGER.info(
            "Document created successfully: %s",
            response.text,
            extra={"status": response.status_code, "doc_id": document.doc_id},
        )
        return response

    def close(self) -> None:
        """Release blocked submitters and close the HTTP session."""

        self._limiter.close()
        self._session.close()

    def _raise_for_status(self, response: Response, product_group: str) -> None:
        status = response.status_code
        if 200 <= status < 300:
            return
        detail = response.text
        LOGGER.error(
            "Document creation failed. Response body: %s",
            detail,
            extra={"status": status, "product_group": product_group},
        )
        raise RegistryStatusError(status, detail)
