"""VCS Tools MCP Server.

A Model Context Protocol server exposing GitHub and Gitea repository
operations (files, issues, releases, webhooks, workflows, actions,
deployments, security, analytics, code review and git bundles) as tools.

Every tool returns the same envelope:
``{"success", "action", "message", "data"?, "error"?}``.

Run with: python -m vcs_tools_mcp
"""

__version__ = "1.0.0"
