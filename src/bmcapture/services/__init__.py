"""Service layer: the three capture contexts and the API client.

Services may import from domain, config, and infrastructure layers.
They must never import from commands or output.
"""
