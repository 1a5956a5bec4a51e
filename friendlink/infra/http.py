"""HTTP client factory for the request/response API."""

from __future__ import annotations

from typing import Optional

import httpx

from friendlink.settings import settings


def create_http_client(
	base_url: Optional[str] = None,
	*,
	timeout: Optional[float] = None,
	transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
	return httpx.AsyncClient(
		base_url=base_url or settings.api_base_url,
		timeout=timeout if timeout is not None else settings.http_timeout_seconds,
		headers={"Accept": "application/json"},
		transport=transport,
	)
