"""Domain layer — type tags, field schemas, validation state, results.

This layer depends only on stdlib and pydantic.
It must never import from services, definitions, commands, or config.
"""
