"""Core business logic: percentile heuristics, the upstream client and data models.

This module is framework-agnostic. It has no dependency on MCP, FastMCP,
Redis, or any server framework.
"""
