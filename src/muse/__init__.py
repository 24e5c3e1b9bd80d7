"""Muse - offline music suggestions and queues learned from your listening."""

__version__ = "0.14.0"
