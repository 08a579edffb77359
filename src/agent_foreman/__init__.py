"""agent-foreman: feature tracking and layered verification for agent-driven projects."""

__version__ = "0.4.0"
