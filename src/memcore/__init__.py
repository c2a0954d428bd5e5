"""memory-core: session and memory store for AI coding assistants."""

__version__ = "0.1.0"
