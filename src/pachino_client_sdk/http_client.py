from __future__ import annotations

import json
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter

from .config import ClientConfig
from .error_mapper import map_error
from .exceptions import TransportError, UnexpectedPayloadError
from .tracing import TRACE_HEADER, TraceContext

logger = logging.getLogger(__name__)

ResponseHook = Callable[[requests.Response], None]
RequestHook = Callable[[str, str, dict[str, Any]], None]


@dataclass
class LastOperation:
    module: str
    operation: str
    duration_ms: int
    result: str
    trace_id: str | None


@dataclass
class HttpClient:
    config: ClientConfig
    trace: TraceContext | None = None
    session: requests.Session | None = None
    before_request: RequestHook | None = None
    after_response: ResponseHook | None = None
    cache_ttl_seconds: float = 3.0
    enable_get_cache: bool = True
    _cache: dict[str, tuple[float, dict[str, Any] | list[Any] | None]] | None = None
    last_operation: LastOperation | None = None

    def __post_init__(self) -> None:
        if self.session is None:
            self.session = requests.Session()
            adapter = HTTPAdapter(
                pool_connections=self.config.max_connections,
                pool_maxsize=self.config.max_connections,
            )
            self.session.mount("http://", adapter)
            self.session.mount("https://", adapter)
        if self._cache is None:
            self._cache = {}

    def _build_url(self, path: str) -> str:
        base = self.config.api_base_url.rstrip("/") + "/"
        return urljoin(base, path.lstrip("/"))

    def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        response_hook: ResponseHook | None = None,
        retry_mutation: bool = False,
        module: str = "unknown",
        operation: str = "unknown",
        use_get_cache: bool = True,
        invalidate_paths: list[str] | None = None,
    ) -> dict[str, Any] | list[Any] | None:
        if self.session is None:
            raise RuntimeError("HTTP session not initialized")
        request_headers = {"Accept": "application/json"}
        if headers:
            request_headers.update(headers)
        trace_context = self.trace or TraceContext()
        request_headers[TRACE_HEADER] = trace_context.ensure()

        normalized_method = method.upper()
        url = self._build_url(path)
        request_context = {
            "headers": request_headers,
            "json_body": json_body,
            "params": params,
        }
        if self.before_request:
            self.before_request(normalized_method, url, request_context)

        # Mutations are never replayed unless the caller vouches for an idempotency key.
        can_retry = normalized_method in {"GET", "HEAD"} or retry_mutation
        attempts = self.config.retries + 1 if can_retry else 1
        cache_key = self._cache_key(normalized_method, url, request_headers, params)
        should_use_get_cache = (
            self.enable_get_cache and use_get_cache and normalized_method == "GET"
        )
        if should_use_get_cache and cache_key:
            cached = self._read_cache(cache_key)
            if cached is not None:
                self.last_operation = LastOperation(
                    module=module,
                    operation=operation,
                    duration_ms=0,
                    result="success(cache)",
                    trace_id=trace_context.trace_id,
                )
                return cached

        started = time.monotonic()
        response: requests.Response | None = None
        for attempt in range(attempts):
            try:
                response = self.session.request(
                    method=normalized_method,
                    url=url,
                    headers=request_headers,
                    json=json_body,
                    params=params,
                    timeout=(self.config.connect_timeout_seconds, self.config.read_timeout_seconds),
                    verify=self.config.verify_ssl,
                )
            except requests.RequestException as exc:
                logger.warning(
                    "%s %s failed on attempt %d/%d: %s", normalized_method, path, attempt + 1, attempts, exc
                )
                if attempt >= attempts - 1:
                    self._record_operation(module, operation, started, "error", trace_context.trace_id)
                    raise TransportError(
                        code="TRANSPORT_ERROR",
                        message=str(exc),
                        details={"type": type(exc).__name__},
                        trace_id=trace_context.trace_id,
                        status_code=0,
                        raw_payload=None,
                    ) from exc
            else:
                if response.status_code < 500 or attempt >= attempts - 1:
                    break
            time.sleep(self.config.retry_backoff_seconds * (2**attempt))

        if response is None:
            raise RuntimeError("HTTP request failed without response")

        if self.after_response:
            self.after_response(response)
        trace_context.update_from_headers(response.headers)
        if response_hook:
            response_hook(response)
        if response.ok:
            if not response.content:
                self._record_operation(module, operation, started, "success", trace_context.trace_id)
                self._invalidate_cache(invalidate_paths or [])
                return None
            try:
                parsed = response.json()
            except ValueError as exc:
                self._record_operation(module, operation, started, "error", trace_context.trace_id)
                raise UnexpectedPayloadError(
                    code="UNEXPECTED_PAYLOAD",
                    message="Server response is not valid JSON",
                    details={"content_type": response.headers.get("Content-Type")},
                    trace_id=trace_context.trace_id,
                    status_code=response.status_code,
                    raw_payload=response.text[:500],
                ) from exc
            if should_use_get_cache and cache_key:
                self._write_cache(cache_key, parsed)
            if normalized_method != "GET":
                self._invalidate_cache(invalidate_paths or [])
            self._record_operation(module, operation, started, "success", trace_context.trace_id)
            return parsed

        payload = None
        try:
            payload = response.json()
        except (json.JSONDecodeError, ValueError):
            payload = {"message": response.text}
        self._record_operation(module, operation, started, "error", trace_context.trace_id)
        logger.info("%s %s answered HTTP %s", normalized_method, path, response.status_code)
        raise map_error(response.status_code, payload if isinstance(payload, dict) else {}, trace_context.trace_id)

    def clear_cache(self) -> None:
        if self._cache is not None:
            self._cache.clear()

    def _record_operation(self, module: str, operation: str, started: float, result: str, trace_id: str | None) -> None:
        self.last_operation = LastOperation(
            module=module,
            operation=operation,
            duration_ms=int((time.monotonic() - started) * 1000),
            result=result,
            trace_id=trace_id,
        )

    def _cache_key(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        params: dict[str, Any] | None,
    ) -> str | None:
        if method != "GET":
            return None
        safe_headers = {key: value for key, value in headers.items() if key in {"Authorization", "Cookie"}}
        return json.dumps({"url": url, "headers": safe_headers, "params": params or {}}, sort_keys=True)

    def _read_cache(self, key: str) -> dict[str, Any] | list[Any] | None:
        if self._cache is None:
            return None
        record = self._cache.get(key)
        if not record:
            return None
        expires_at, payload = record
        if time.monotonic() >= expires_at:
            self._cache.pop(key, None)
            return None
        return payload

    def _write_cache(self, key: str, payload: dict[str, Any] | list[Any] | None) -> None:
        if self._cache is None:
            self._cache = {}
        self._cache[key] = (time.monotonic() + self.cache_ttl_seconds, payload)

    def _invalidate_cache(self, paths: list[str]) -> None:
        if self._cache is None or not paths:
            return
        doomed = [key for key in self._cache if any(path in key for path in paths)]
        for key in doomed:
            self._cache.pop(key, None)
