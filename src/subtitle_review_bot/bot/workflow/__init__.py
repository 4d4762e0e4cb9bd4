"""Workflow domain concepts.

This package holds:
- Domain events parsed from webhook deliveries
- The reference resolver, status transitions and pull classification
- The upload command pipeline
- The reaction rules and the dispatcher that routes events to them

GitHub is the only store: every rule re-derives what it needs from current
labels and comments.
"""

__all__: list[str] = []
