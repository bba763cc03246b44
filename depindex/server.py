"""FastMCP server exposing dependency indexing and impact analysis."""

import asyncio
import logging
from typing import List, Optional

from mcp.server.fastmcp import FastMCP

from .config import create_storage, get_env_config
from .indexer.analyzers import AnalyzerRegistry
from .indexer.grammars import get_language_registry
from .indexer.index_builder import IndexBuilder
from .indexer.index_loader import QueryEngineCache
from .tools.impact_tool import ImpactTool
from .tools.index_tool import IndexingTool
from .tools.symbol_tool import SymbolTool

config = get_env_config()

# Configure logging
log_level = config["log_level"]
formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

console_handler = logging.StreamHandler()
console_handler.setLevel(log_level)
console_handler.setFormatter(formatter)

root_logger = logging.getLogger()
root_logger.setLevel(log_level)
root_logger.addHandler(console_handler)

if config["log_file"]:
    file_handler = logging.FileHandler(config["log_file"])
    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

logger = logging.getLogger(__name__)

# Initialize FastMCP server
mcp = FastMCP("depindex")

# Tool instances (initialized on startup)
index_tool: Optional[IndexingTool] = None
symbol_tool: Optional[SymbolTool] = None
impact_tool: Optional[ImpactTool] = None


def initialize_components() -> None:
    """Initialize storage, analyzers and tools."""
    global index_tool, symbol_tool, impact_tool

    logger.info("Initializing components...")
    logger.info(f"Index storage: {config['index_storage']}")

    storage = create_storage(config)
    analyzers = AnalyzerRegistry.default()
    language_registry = get_language_registry()
    engines = QueryEngineCache(storage)

    builder = IndexBuilder(
        storage,
        analyzers=analyzers,
        language_registry=language_registry,
        max_workers=config["max_workers"],
    )

    index_tool = IndexingTool(builder, engines)
    symbol_tool = SymbolTool(analyzers, language_registry, engines)
    impact_tool = ImpactTool(analyzers, language_registry, engines)

    logger.info(f"Analyzers available for: {', '.join(analyzers.get_supported_languages())}")
    logger.info("All components initialized successfully")


@mcp.tool()
async def index_repository(repo_path: Optional[str] = None, repo_name: Optional[str] = None) -> dict:
    """Build the dependency index of a repository and persist it.

    Args:
        repo_path: Path to the repository (defaults to the mounted workspace)
        repo_name: Repository identifier, e.g. "owner/name" (defaults to the directory name)

    Returns:
        Dictionary with file, class and dependency counts and the build duration
    """
    if not index_tool:
        return {"success": False, "error": "Server not initialized"}

    repo_path = repo_path or config["workspace_path"]
    repo_name = repo_name or (config["repo_name"] if repo_path == config["workspace_path"] else None)

    # Building is CPU bound; keep the event loop responsive
    return await asyncio.to_thread(index_tool.index_repository, repo_path, repo_name)


@mcp.tool()
def get_index_status(repo_name: str) -> dict:
    """Get statistics about a repository's dependency index.

    Args:
        repo_name: Repository identifier

    Returns:
        Dictionary with class, dependency and file counts, languages and last update time
    """
    if not index_tool:
        return {"success": False, "error": "Server not initialized"}

    return index_tool.get_index_status(repo_name)


@mcp.tool()
def list_indexes() -> dict:
    """List the repositories that have a persisted dependency index.

    Returns:
        Dictionary with the index keys
    """
    if not index_tool:
        return {"success": False, "error": "Server not initialized"}

    return index_tool.list_indexes()


@mcp.tool()
def get_symbols(file_path: str, class_name: Optional[str] = None) -> dict:
    """Extract types, public methods and dependency edges from a source file.

    Args:
        file_path: Path to the source file
        class_name: Only report this type

    Returns:
        Dictionary with the declared types, their public methods and line numbers
    """
    if not symbol_tool:
        return {"success": False, "error": "Server not initialized"}

    return symbol_tool.get_symbols(file_path, class_name)


@mcp.tool()
def find_class(repo_name: str, class_name: str) -> dict:
    """Look up a type in a repository's dependency index.

    Args:
        repo_name: Repository identifier
        class_name: Simple name of the type (e.g., "UserService")

    Returns:
        Dictionary with the type's file, package, public methods and supertypes
    """
    if not symbol_tool:
        return {"success": False, "error": "Server not initialized"}

    return symbol_tool.find_class(repo_name, class_name)


@mcp.tool()
def find_classes_in_file(repo_name: str, file_path: str) -> dict:
    """List the types declared in an indexed file.

    Args:
        repo_name: Repository identifier
        file_path: Repository-relative path (e.g., "src/main/java/com/acme/User.java")

    Returns:
        Dictionary with the type names
    """
    if not symbol_tool:
        return {"success": False, "error": "Server not initialized"}

    return symbol_tool.find_classes_in_file(repo_name, file_path)


@mcp.tool()
def find_dependents(repo_name: str, class_name: str) -> dict:
    """Find the types that extend, implement or inject a type.

    Args:
        repo_name: Repository identifier
        class_name: Simple name of the type

    Returns:
        Dictionary with the dependent type names
    """
    if not impact_tool:
        return {"success": False, "error": "Server not initialized"}

    return impact_tool.find_dependents(repo_name, class_name)


@mcp.tool()
def analyze_impact(repo_name: str, class_name: str) -> dict:
    """Estimate which types and files are affected if a type changes.

    Args:
        repo_name: Repository identifier
        class_name: Simple name of the changed type

    Returns:
        Dictionary with direct and indirect dependents, affected files and total impact
    """
    if not impact_tool:
        return {"success": False, "error": "Server not initialized"}

    return impact_tool.analyze_impact(repo_name, class_name)


@mcp.tool()
def detect_breaking_changes(repo_name: str, changes: List[dict]) -> dict:
    """Detect API-breaking edits in a set of changed files.

    Args:
        repo_name: Repository whose index is used to estimate impact
        changes: Items with "filename" plus "old_content" and/or "new_content"

    Returns:
        Dictionary with breaking changes, affected files and classes, and a risk level
    """
    if not impact_tool:
        return {"success": False, "error": "Server not initialized"}

    return impact_tool.detect_breaking_changes(repo_name, changes)


if __name__ == "__main__":
    logger.info("Starting depindex MCP Server...")

    initialize_components()

    logger.info("Server ready!")

    try:
        mcp.run()
    except KeyboardInterrupt:
        logger.info("Server interrupted")
    except Exception as e:
        logger.error(f"Server error: {e}")
        raise
