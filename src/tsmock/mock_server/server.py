"""Mock MCP Server - Mock response data from TypeScript request declarations."""

from fastmcp import FastMCP

from .tools import register_mock_tools

__version__ = "0.1.0"

# Initialize the Mock MCP server
mcp = FastMCP(
    name="TSMock Mock Server",
    version=__version__,
    instructions="""
        Mock server keeps mock API responses in sync with TypeScript request code:

        Core Tools:
        - extract_endpoints: Resolve the response shape of every request call site
        - diff_structures: Classify endpoints as created, updated or deleted
        - sync_mock_data: Rescan and update structure.json / mock.json

        Best Practices:
        - Restrict scanning to service classes with includes (e.g. "Service$")
        - Run sync_mock_data after changing request code or response types
        - Edit mock.json by hand freely; unchanged endpoints keep their values
    """,
)

# Register all mock tools
register_mock_tools(mcp)

if __name__ == "__main__":
    mcp.run()
