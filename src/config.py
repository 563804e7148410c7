from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping

from dotenv import load_dotenv

from version import SERVER_NAME

APP_NAME = SERVER_NAME
DEFAULT_ENDPOINT_URL = "https://countries.trevorblades.com/"
DEFAULT_TIMEOUT_S = 30.0
_REPO_ROOT = Path(__file__).resolve().parent.parent
_ENV_PATHS = [Path.cwd() / ".env", _REPO_ROOT / ".env"]
for _path in _ENV_PATHS:
    if _path.exists():
        load_dotenv(_path, override=True)

logger = logging.getLogger(APP_NAME)


@dataclass(frozen=True)
class GraphQLConfig:
    endpoint_url: str = DEFAULT_ENDPOINT_URL
    headers: dict[str, str] = field(default_factory=dict)
    timeout_s: float = DEFAULT_TIMEOUT_S
    header_source: str | None = None
    endpoint_defaulted: bool = False

    def with_overrides(
        self,
        *,
        endpoint_url: str | None = None,
        headers: Mapping[str, str] | None = None,
        timeout_s: float | None = None,
    ) -> GraphQLConfig:
        merged = dict(self.headers)
        merged.update(headers or {})
        return GraphQLConfig(
            endpoint_url=endpoint_url or self.endpoint_url,
            headers=merged,
            timeout_s=self.timeout_s if timeout_s is None else timeout_s,
            header_source=self.header_source if not headers else "cli",
            endpoint_defaulted=self.endpoint_defaulted and not endpoint_url,
        )


def _split_header(raw: str) -> tuple[str, str] | None:
    name, sep, value = raw.partition(":")
    name = name.strip()
    if not sep or not name:
        return None
    return name, value.strip()


def parse_plain_header(raw: str) -> dict[str, str]:
    pair = _split_header(raw)
    if pair is None:
        logger.warning("Ignoring header specification without 'Name: Value' form: %r", raw)
        return {}
    return dict([pair])


def parse_header_spec(raw: str) -> dict[str, str]:
    """
    Parse a header specification from the environment.

    A JSON object maps header names to values. Anything else is read as a
    single `Name: Value` pair split at the first colon.
    """
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        parsed = None
    if isinstance(parsed, dict):
        return {str(key): str(val) for key, val in parsed.items()}
    return parse_plain_header(raw)


def parse_cli_headers(raw_headers: Iterable[str] | None) -> dict[str, str]:
    """Strict variant for `--header` flags: a malformed entry is an error, not a warning."""
    headers: dict[str, str] = {}
    for raw in raw_headers or []:
        pair = _split_header(raw)
        if pair is None:
            raise ValueError(f"Invalid header (expected 'Name: Value'): {raw}")
        headers[pair[0]] = pair[1]
    return headers


def _load_env_headers(environ: Mapping[str, str]) -> tuple[dict[str, str], str | None]:
    raw_headers = environ.get("HEADERS")
    raw_header = environ.get("HEADER")
    if raw_headers:
        if raw_header:
            logger.warning("Both HEADERS and HEADER are set; using HEADERS and ignoring HEADER.")
        return parse_header_spec(raw_headers), "HEADERS"
    if raw_header:
        return parse_plain_header(raw_header), "HEADER"
    return {}, None


def load_graphql_config(environ: Mapping[str, str] | None = None) -> GraphQLConfig:
    env = os.environ if environ is None else environ

    endpoint_url = (env.get("URL") or "").strip()
    endpoint_defaulted = not endpoint_url

    headers, header_source = _load_env_headers(env)

    return GraphQLConfig(
        endpoint_url=endpoint_url or DEFAULT_ENDPOINT_URL,
        headers=headers,
        timeout_s=DEFAULT_TIMEOUT_S,
        header_source=header_source,
        endpoint_defaulted=endpoint_defaulted,
    )
