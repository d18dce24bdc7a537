"""Domain layer: models, outcomes, and the popup state machine.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
