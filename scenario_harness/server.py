import asyncio
import json
from typing import Dict, List, Any, Optional
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from .config import HarnessConfig
from .loader import load_suite
from .models import SuiteReport


class HarnessServer:
    """Exposes suite runs as Model Context Protocol tools over stdio"""

    def __init__(self, config: Optional[HarnessConfig] = None):
        self.server = Server("scenario-harness")
        self.config = config or HarnessConfig()
        self.last_report: Optional[SuiteReport] = None
        self.setup_tools()

    def tool_definitions(self) -> List[Tool]:
        return [
            Tool(
                name="run_suite",
                description="Run a scenario suite and return its report",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "target": {
                            "type": "string",
                            "description": "Suite to run, as package.module:attribute"
                        },
                        "timeout_ms": {
                            "type": "integer",
                            "description": "Optional per-scenario timeout override"
                        }
                    },
                    "required": ["target"]
                }
            ),
            Tool(
                name="list_scenarios",
                description="List the scenarios registered in a suite",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "target": {"type": "string"}
                    },
                    "required": ["target"]
                }
            ),
            Tool(
                name="get_last_report",
                description="Return the report of the most recent suite run",
                inputSchema={"type": "object", "properties": {}}
            )
        ]

    def setup_tools(self):
        """Register available tools with MCP protocol"""

        @self.server.list_tools()
        async def list_tools() -> List[Tool]:
            return self.tool_definitions()

        @self.server.call_tool()
        async def call_tool(name: str, arguments: Dict) -> List[TextContent]:
            return await self.handle_tool(name, arguments)

    async def handle_tool(self, name: str, arguments: Dict) -> List[TextContent]:
        arguments = arguments or {}
        try:
            if name == "run_suite":
                result = await self.run_suite(
                    arguments["target"],
                    arguments.get("timeout_ms")
                )

            elif name == "list_scenarios":
                result = self.list_scenarios(arguments["target"])

            elif name == "get_last_report":
                result = self.get_last_report()

            else:
                result = {"error": f"Unknown tool: {name}"}

            return [TextContent(
                type="text",
                text=json.dumps(result, indent=2)
            )]

        except Exception as e:
            return [TextContent(
                type="text",
                text=json.dumps({
                    "error": f"{type(e).__name__}: {e}",
                    "tool": name,
                    "arguments": arguments
                }, indent=2)
            )]

    async def run_suite(self, target: str, timeout_ms: Optional[int] = None) -> Dict[str, Any]:
        suite = load_suite(target, config=self.config)
        report = await suite.run(timeout_ms)
        self.last_report = report
        return report.to_document()

    def list_scenarios(self, target: str) -> Dict[str, Any]:
        suite = load_suite(target, config=self.config)
        return {
            "suite": suite.name,
            "scenarios": [
                {"name": s.name, "timeout_ms": s.timeout_ms}
                for s in suite.scenarios
            ]
        }

    def get_last_report(self) -> Dict[str, Any]:
        if self.last_report is None:
            return {"error": "No suite has run yet"}
        return self.last_report.to_document()

    async def run(self):
        """Start the MCP server"""
        async with stdio_server() as (read_stream, write_stream):
            await self.server.run(
                read_stream,
                write_stream,
                self.server.create_initialization_options()
            )


def main():
    """Entry point for the MCP server"""
    import sys
    import logging

    # Set up logging
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    server = HarnessServer(HarnessConfig.from_env())

    try:
        asyncio.run(server.run())
    except KeyboardInterrupt:
        logging.info("Server stopped by user")
    except Exception as e:
        logging.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
