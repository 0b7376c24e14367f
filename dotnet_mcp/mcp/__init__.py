"""MCP server, tool context, and tool surface."""
