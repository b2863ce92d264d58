"""YAPS MCP Server.

Ask your AI how much attention an X/Twitter account is getting: Kaito YAPS
scores, head-to-head comparisons, and a daily top-10 leaderboard.
"""

__version__ = "0.1.0"
