"""
GraphQL MCP server exposing `introspect_schema` and `graphql_request` tools for one endpoint.

What it does:
- Forwards each tool call as a single HTTP POST to the configured GraphQL endpoint.
- Returns the raw JSON response body as the tool's text output.

How `introspect_schema` works:
- Sends the standard full introspection query (graphql-core) and returns the response verbatim.
- The same document backs the `graphql-schema` resource.

How `graphql_request` works:
- Requires `query`, accepts an optional `variables` object.
- HTTP status >= 400 fails the call with the response body in the error message.
- GraphQL `errors` in a 200 response are returned as ordinary output.

Configuration:
- URL: endpoint (default https://countries.trevorblades.com/).
- HEADERS: JSON object of headers, or a single 'Name: Value' string. HEADER is read only when HEADERS is unset.
- Supports stdio/SSE/HTTP transports configured via env or CLI flags.
"""

import os
import logging
from typing import Any, Literal

from graphql import get_introspection_query
from mcp.server.fastmcp import FastMCP

from config import APP_NAME, GraphQLConfig, load_graphql_config, parse_cli_headers
from graphql_client import GraphQLForwarder
from version import SERVER_DESCRIPTION, __version__

DEFAULT_TRANSPORT = os.environ.get("MCP_TRANSPORT", os.environ.get("FASTMCP_TRANSPORT", "stdio"))
DEFAULT_INSTRUCTIONS = (
    "This MCP server gives access to a single GraphQL API. If you do not already know its schema, "
    "call introspect_schema (or read the graphql-schema resource) first. Then call graphql_request "
    "with one valid query and, when needed, a variables object."
)
MCP_INSTRUCTIONS = os.environ.get("MCP_INSTRUCTIONS", DEFAULT_INSTRUCTIONS)
SCHEMA_RESOURCE_URI = "graphql://schema"
INTROSPECTION_QUERY = get_introspection_query(descriptions=True)

CONFIG: GraphQLConfig = load_graphql_config()
forwarder = GraphQLForwarder(CONFIG)

mcp = FastMCP(APP_NAME, instructions=MCP_INSTRUCTIONS)
mcp.dependencies = ["aiohttp", "graphql-core", "python-dotenv"]
logger = logging.getLogger(APP_NAME)


def _run_with_default_transport(
    self,
    transport: Literal["stdio", "sse", "streamable-http"] | None = None,
    mount_path: str | None = None,
):
    chosen = transport or DEFAULT_TRANSPORT
    return FastMCP.run(self, transport=chosen, mount_path=mount_path)


mcp.run = _run_with_default_transport.__get__(mcp, FastMCP)


def configure_runtime(config: GraphQLConfig) -> None:
    global CONFIG, forwarder
    CONFIG = config
    forwarder = GraphQLForwarder(config)


@mcp.resource(
    SCHEMA_RESOURCE_URI,
    name="graphql-schema",
    description="access graphql schema",
    mime_type="application/json",
)
async def graphql_schema() -> str:
    return await forwarder.execute(INTROSPECTION_QUERY)


@mcp.tool()
async def introspect_schema() -> str:
    """
    Introspect the GraphQL schema. Use this tool before doing a query to get the schema
    information if you do not have it available as a resource already.
    """
    return await forwarder.execute(INTROSPECTION_QUERY)


@mcp.tool()
async def graphql_request(query: str, variables: dict[str, Any] | None = None) -> str:
    """
    Query the GraphQL endpoint with the given query and variables.

    query: the GraphQL query string (e.g. 'query { user { name } }')
    variables: optional variables
    """
    if not query or not query.strip():
        raise ValueError("query must be a non-empty GraphQL document")
    return await forwarder.execute(query, variables)


def main(argv: list[str] | None = None) -> None:
    import argparse

    parser = argparse.ArgumentParser(description=SERVER_DESCRIPTION)
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--transport",
        choices=["stdio", "sse", "streamable-http"],
        default=DEFAULT_TRANSPORT,
        help="MCP transport to run (default: stdio; override with --transport or MCP_TRANSPORT env).",
    )
    parser.add_argument(
        "--endpoint",
        default=None,
        help="GraphQL endpoint URL (overrides the URL env variable).",
    )
    parser.add_argument(
        "--header",
        action="append",
        default=[],
        help="Add an HTTP header, like 'Authorization: Bearer ...' (repeatable, merged over HEADERS/HEADER).",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="HTTP timeout (seconds) for requests to the endpoint (default: 30).",
    )
    parser.add_argument(
        "--host",
        default=mcp.settings.host,
        help="Host for SSE/HTTP transports (default: 127.0.0.1).",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=mcp.settings.port,
        help="Port for SSE/HTTP transports (default: 8000).",
    )
    parser.add_argument(
        "--log-level",
        default=mcp.settings.log_level,
        help="Log level (DEBUG, INFO, WARNING, ERROR).",
    )
    parser.add_argument(
        "--mount-path",
        default=mcp.settings.mount_path,
        help="Mount path for SSE transport (default: /).",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.INFO))

    try:
        cli_headers = parse_cli_headers(args.header)
    except ValueError as exc:
        parser.error(str(exc))
    if args.timeout is not None and args.timeout <= 0:
        parser.error("--timeout must be a positive number of seconds")

    endpoint_url = args.endpoint.strip() if args.endpoint else None
    configure_runtime(
        load_graphql_config().with_overrides(
            endpoint_url=endpoint_url,
            headers=cli_headers,
            timeout_s=args.timeout,
        )
    )

    if CONFIG.endpoint_defaulted:
        logger.info("URL not set, using default endpoint %s", CONFIG.endpoint_url)

    mcp.settings.host = args.host
    mcp.settings.port = args.port
    mcp.settings.log_level = args.log_level
    mcp.settings.mount_path = args.mount_path

    logger.info(
        "Starting %s %s with transport=%s, endpoint=%s, headers=%s",
        APP_NAME,
        __version__,
        args.transport,
        CONFIG.endpoint_url,
        sorted(CONFIG.headers.keys()),
    )
    mcp.run(transport=args.transport, mount_path=args.mount_path)


if __name__ == "__main__":
    main()
