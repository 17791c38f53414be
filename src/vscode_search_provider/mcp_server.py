import asyncio
import json
from collections.abc import Iterable
from urllib.parse import unquote

import mcp.server.stdio
import mcp.types as types
import pydantic
from mcp.server import NotificationOptions, Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.models import InitializationOptions

from vscode_search_provider.config import ProviderConfig
from vscode_search_provider.index.messages import ResultMetadata, SearchRequestMessage
from vscode_search_provider.index.searcher import terms_from_query
from vscode_search_provider.index.watcher import StoreWatcher
from vscode_search_provider.logger import logging
from vscode_search_provider.provider import SearchProvider

logger = logging.getLogger(__name__)

RESOURCE_SCHEME = "vscode"


def metadata_to_json(metadata: ResultMetadata) -> dict:
    return {
        "id": metadata.identifier,
        "name": metadata.name,
        "description": metadata.description,
        "path": str(metadata.path),
        "variant": metadata.variant,
        "icon": metadata.icon,
        "spans": [list(span) for span in metadata.spans],
    }


def resource_uri(metadata: ResultMetadata) -> str:
    return f"{RESOURCE_SCHEME}://{metadata.identifier.rsplit('-', 1)[0]}/{metadata.identifier}"


def create_server(provider: SearchProvider) -> Server:
    server = Server("vscode-search-provider")

    @server.list_tools()
    async def handle_list_tools() -> list[types.Tool]:
        """
        List available tools.
        Each tool specifies its arguments using JSON Schema validation.
        """
        return [
            types.Tool(
                name="search-workspaces",
                description="Search recently opened VSCode workspaces",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "query": {"type": "string"},
                        "limit": {"type": "integer", "minimum": 1},
                    },
                    "required": ["query"],
                },
            ),
            types.Tool(
                name="open-workspace",
                description="Reopen a workspace found by search-workspaces in its editor",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "id": {"type": "string"},
                    },
                    "required": ["id"],
                },
            ),
        ]

    @server.call_tool()
    async def handle_call_tool(name: str, arguments: dict | None) -> list[types.TextContent]:
        """
        Handle tool execution requests.
        """
        if not arguments:
            raise ValueError("Missing arguments")

        if name == "search-workspaces":
            query = arguments.get("query")
            if not query:
                raise ValueError("Missing query")
            request = SearchRequestMessage(terms_from_query(query), limit=arguments.get("limit"))
            resp = await asyncio.to_thread(provider.handle_search, request)
            payload = {
                "generation": resp.generation,
                "failed": resp.failed,
                "results": [metadata_to_json(result) for result in resp.results],
            }
            return [types.TextContent(type="text", text=json.dumps(payload))]

        if name == "open-workspace":
            identifier = arguments.get("id")
            if not identifier:
                raise ValueError("Missing id")
            spec = await asyncio.to_thread(provider.on_activate, identifier)
            if spec is None:
                text = f"Workspace {identifier} is no longer available"
            else:
                text = f"Launched {' '.join(spec.argv)}"
            return [types.TextContent(type="text", text=text)]

        raise ValueError(f"Unknown tool: {name}")

    @server.list_resources()
    async def handle_list_resources() -> list[types.Resource]:
        """
        List every indexed workspace as a resource.
        """
        workspaces = await asyncio.to_thread(provider.list_workspaces)
        return [
            types.Resource(
                uri=pydantic.networks.AnyUrl(resource_uri(metadata)),
                name=metadata.name,
                description=metadata.description,
                mimeType="application/json",
            )
            for metadata in workspaces
        ]

    @server.read_resource()
    async def handle_read_resource(uri: pydantic.networks.AnyUrl) -> Iterable[ReadResourceContents]:
        """
        Read the metadata of a workspace.
        """
        logger.info("Reading resource: %s", uri)
        if uri.scheme != RESOURCE_SCHEME:
            raise ValueError(f"Unsupported scheme: {uri.scheme}")

        if not uri.path:
            raise ValueError("Missing path")

        identifier = unquote(uri.path.lstrip("/"))
        metadata = await asyncio.to_thread(provider.on_result_metadata, [identifier])
        if not metadata:
            raise ValueError(f"Workspace not found: {identifier}")
        return [
            ReadResourceContents(content=json.dumps(metadata_to_json(metadata[0])), mime_type="application/json")
        ]

    return server


def run_server(config: ProviderConfig, watch_stores: bool = False):
    provider = SearchProvider.for_installed_variants(config.config_root, config.staleness)
    server = create_server(provider)

    watcher = None
    if watch_stores:
        watcher = StoreWatcher(provider.index, provider.index.variants, config.config_root)

    async def run_server():
        if watcher:
            watcher.start()
        try:
            # Run the server using stdin/stdout streams
            async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
                await server.run(
                    read_stream,
                    write_stream,
                    InitializationOptions(
                        server_name="vscode-search-provider",
                        server_version="0.1.0",
                        capabilities=server.get_capabilities(
                            notification_options=NotificationOptions(),
                            experimental_capabilities={},
                        ),
                    ),
                )
        finally:
            if watcher:
                watcher.stop()

    logger.info("Starting server for config root %s", config.config_root)

    asyncio.run(run_server())
