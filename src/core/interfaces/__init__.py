"""Core interfaces.

Contracts (Protocol) implemented by concrete adapters so the core depends on
abstractions only.
"""
