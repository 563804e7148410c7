"""Server identification reported to MCP clients."""

__version__ = "0.1.0"

SERVER_NAME = "mcp-graphql"
SERVER_DESCRIPTION = "MCP server forwarding introspection and queries to a GraphQL endpoint"
