"""Async transport shared by the file, vector store and assistant clients."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel

from ..errors import ApiError
from ..models import Page

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"
PAGE_LIMIT = 100
JSON_DECODE_FAILURE = "Fail on json encode even when 200"

M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True)
class RequestOptions:
    """Immutable connection settings handed to every client."""

    api_key: str
    base_url: str = DEFAULT_BASE_URL
    verbose: bool = False
    timeout: Optional[float] = None


@dataclass(frozen=True)
class ApiResponse:
    """Uniform result of a single API call."""

    data: Any
    status: int
    status_text: Optional[str] = None
    raw_text: str = ""

    @property
    def ok(self) -> bool:
        return self.status == 200


def build_http_client(options: RequestOptions) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=options.base_url.rstrip("/"),
        timeout=httpx.Timeout(options.timeout),
    )


class ClientCore:
    """Thin async wrapper over the OpenAI REST API."""

    def __init__(
        self,
        options: RequestOptions,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.options = options
        self._owns_client = client is None
        self._client = client or build_http_client(options)
        self._log_level = logging.INFO if options.verbose else logging.DEBUG

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def log(self, message: str, *args: Any) -> None:
        logger.log(self._log_level, message, *args)

    def _headers(self, *, multipart: bool, use_v2: bool) -> Dict[str, str]:
        headers = {"Authorization": f"Bearer {self.options.api_key}"}
        # httpx writes the multipart boundary into Content-Type itself.
        if not multipart:
            headers["Content-Type"] = "application/json"
        if use_v2:
            headers["OpenAI-Beta"] = "assistants=v2"
        return headers

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        json_body: Any = None,
        params: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        use_v2: bool = True,
    ) -> ApiResponse:
        multipart = files is not None
        headers = self._headers(multipart=multipart, use_v2=use_v2)
        content = None if json_body is None else json.dumps(json_body)

        self.log("Requesting %s %s%s", method, self.options.base_url, endpoint)
        if content is not None:
            self.log("Request body: %s", content)

        try:
            response = await self._client.request(
                method,
                endpoint,
                headers=headers,
                params=params,
                content=content,
                files=files,
                data=data,
            )
        except httpx.HTTPError as exc:
            logger.error("Request %s %s failed: %s", method, endpoint, exc)
            raise

        raw_text = response.text
        self.log("Response status: %s %s", response.status_code, response.reason_phrase)

        try:
            parsed = json.loads(raw_text)
        except ValueError:
            if response.is_success:
                return ApiResponse(
                    data=None,
                    status=500,
                    status_text=JSON_DECODE_FAILURE,
                    raw_text=raw_text,
                )
            self.log("Response data: %s", raw_text)
            return ApiResponse(
                data=None,
                status=response.status_code,
                status_text=response.reason_phrase,
                raw_text=raw_text,
            )

        self.log("Response data: %s", raw_text)
        return ApiResponse(
            data=parsed,
            status=response.status_code,
            status_text=None if response.is_success else response.reason_phrase,
            raw_text=raw_text,
        )

    async def request_bytes(self, endpoint: str, *, use_v2: bool = False) -> bytes:
        """GET an endpoint whose body is not JSON (file content)."""
        headers = self._headers(multipart=True, use_v2=use_v2)
        self.log("Downloading %s%s", self.options.base_url, endpoint)
        try:
            response = await self._client.get(endpoint, headers=headers)
        except httpx.HTTPError as exc:
            logger.error("Download %s failed: %s", endpoint, exc)
            raise

        if response.status_code != 200:
            text = response.text
            try:
                parsed = json.loads(text)
            except ValueError:
                parsed = None
            raise ApiError(response.status_code, response.reason_phrase, parsed, text)
        return response.content

    @staticmethod
    def ensure_ok(resp: ApiResponse) -> ApiResponse:
        if not resp.ok:
            raise ApiError.from_response(resp)
        return resp

    async def paginate(
        self,
        endpoint: str,
        model: Type[M],
        *,
        use_v2: bool = True,
        params: Optional[Dict[str, Any]] = None,
    ) -> AsyncIterator[M]:
        """Yield every item of a cursor-paginated listing in server order."""
        after: Optional[str] = None
        while True:
            query: Dict[str, Any] = {"limit": PAGE_LIMIT, **(params or {})}
            if after:
                query["after"] = after
            resp = self.ensure_ok(
                await self.request("GET", endpoint, params=query, use_v2=use_v2)
            )
            page = Page[model].model_validate(resp.data)
            for item in page.data:
                yield item
            if not page.has_more:
                break
            after = page.last_id or (page.data[-1].id if page.data else None)
            if not after:
                break

    async def collect(self, endpoint: str, model: Type[M], *, use_v2: bool = True) -> list[M]:
        return [item async for item in self.paginate(endpoint, model, use_v2=use_v2)]
