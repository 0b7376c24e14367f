"""dotnet-mcp - MCP server exposing the .NET SDK to AI assistants."""

# Load .env so DOTNET_MCP_DOTNET_PATH, DOTNET_MCP_LOG_LEVEL, etc. are set
# for any entry point (CLI, pytest) that imports dotnet_mcp.
from dotenv import load_dotenv

load_dotenv()

# Keep in sync with pyproject.toml [project] version.
__version__ = "0.1.0"


def run_server() -> None:
    """Run the dotnet-mcp MCP server (blocking).

    Uses stdio transport for communication with the MCP client.
    """
    from dotnet_mcp.mcp.server import run_server as _run_server
    _run_server()
