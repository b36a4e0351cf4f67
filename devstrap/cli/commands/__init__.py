"""Command handlers. Each module exposes run(args) -> int."""
