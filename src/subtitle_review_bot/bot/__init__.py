"""Workflow bot components.

- Settings loaded from .env
- Structured logging
- The GitHub tracker adapter
- Reaction rules and their dispatcher
"""
