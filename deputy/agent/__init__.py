"""Agent core: session loop, permissions and tools."""
