"""Built-in plugins registered by every store."""
