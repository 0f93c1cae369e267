"""MCP (Model Context Protocol) server exposing folder-publisher operations."""
