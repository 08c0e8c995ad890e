"""
TRON MCP server package.

This package exposes chain lookups, unsigned-transaction helpers and a local
bonding-curve pricing engine as tools over JSON-RPC (stdio or HTTP). See
DESIGN.md for full details.
"""

__all__ = ["config"]
