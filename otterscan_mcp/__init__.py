"""
Read-only Otterscan MCP server package.

This package exposes LLM-friendly tools backed by the Otterscan JSON-RPC
extension of an Erigon node. See DESIGN.md for full details.
"""

__all__ = ["config"]
