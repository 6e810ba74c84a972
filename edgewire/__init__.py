"""MQTT client, MessagePack codec, JSON-like document model and URL parsing."""

__version__ = "0.1.0"