# HTTP API for volume set up and tear down
from .handlers import APIHandlers
from .routes import register_routes

__all__ = ["APIHandlers", "register_routes"]
