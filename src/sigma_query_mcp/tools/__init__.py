# Sigma Query MCP Server
# File: tools/__init__.py
# Version: v1

"""MCP tools exposed by the Sigma Query MCP Server (see ``tasks``)."""
