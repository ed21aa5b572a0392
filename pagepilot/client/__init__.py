"""Client for the PagePilot classification service"""
from pagepilot.client.classification_client import ClassificationClient

__all__ = ["ClassificationClient"]
