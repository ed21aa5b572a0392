"""HTTP classification service"""
from pagepilot.server.app import create_app, serve

__all__ = ["create_app", "serve"]
