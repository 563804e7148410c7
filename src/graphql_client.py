from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Mapping

import aiohttp

from config import APP_NAME, GraphQLConfig, load_graphql_config

logger = logging.getLogger(APP_NAME)


class GraphQLRequestError(RuntimeError):
    """Base class for failures while forwarding a request to the GraphQL endpoint."""


class PayloadEncodeError(GraphQLRequestError):
    pass


class RequestBuildError(GraphQLRequestError):
    pass


class TransportError(GraphQLRequestError):
    pass


class ResponseReadError(GraphQLRequestError):
    pass


class HTTPStatusError(GraphQLRequestError):
    """The endpoint answered with status >= 400. The full body is kept."""

    def __init__(self, status: int, body: str):
        super().__init__(f"http status {status}: {body}")
        self.status = status
        self.body = body


def build_payload(query: str, variables: Mapping[str, Any] | None = None) -> dict:
    payload: dict[str, Any] = {"query": query}
    if variables is not None:
        payload["variables"] = variables
    return payload


def encode_payload(query: str, variables: Mapping[str, Any] | None = None) -> bytes:
    try:
        return json.dumps(build_payload(query, variables), allow_nan=False).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise PayloadEncodeError(f"failed to marshal request: {exc}") from exc


class GraphQLForwarder:
    def __init__(self, config: GraphQLConfig | None = None):
        self._config = config or load_graphql_config()

    @property
    def endpoint_url(self) -> str:
        return self._config.endpoint_url

    def request_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        headers.update(self._config.headers)
        return headers

    async def execute(self, query: str, variables: Mapping[str, Any] | None = None) -> str:
        """
        POST the query to the endpoint and return the raw response body.

        Raises HTTPStatusError (carrying the body) for status >= 400. GraphQL
        `errors` inside a successful response are returned as-is.
        """
        body = encode_payload(query, variables)
        url = self._config.endpoint_url
        logger.debug("POST %s (%d bytes)", url, len(body))

        timeout = aiohttp.ClientTimeout(total=self._config.timeout_s)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            try:
                async with session.post(url, data=body, headers=self.request_headers()) as resp:
                    status = resp.status
                    text = await self._read_body(resp)
            except ValueError as exc:
                raise RequestBuildError(f"failed to create request: {exc}") from exc
            except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
                raise TransportError(f"request failed: {exc or type(exc).__name__}") from exc

        if status >= 400:
            logger.warning("GraphQL endpoint %s returned status %s", url, status)
            raise HTTPStatusError(status, text)
        return text

    @staticmethod
    async def _read_body(resp: aiohttp.ClientResponse) -> str:
        try:
            raw = await resp.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise ResponseReadError(f"failed to read response: {exc or type(exc).__name__}") from exc
        return raw.decode("utf-8", errors="replace")
