"""
Infrastructure Layer

Reusable services that support procedure invocation without performing
any I/O themselves.

Components:
- sql: column discovery, type mapping, tabular conversion, call composition
- registry: thread-safe procedure registrations
"""

__all__: list[str] = []
