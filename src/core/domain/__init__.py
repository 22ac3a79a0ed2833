"""Domain models and entities.

Pure, strict data structures (Pydantic v2) plus the session state. The domain
knows nothing about HTTP or the CLI.
"""
