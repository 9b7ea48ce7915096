"""
API module for the automation-assistant tools.

This module contains:
- schemas.py: Validated request models per tool
- tools.py: Tool handlers returning MCP-style results
"""

__all__ = ["schemas", "tools"]
