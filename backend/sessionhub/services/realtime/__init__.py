"""
Realtime Provider Module

Gateway to the externally hosted video calls and chat channels.
"""
from .stream_gateway import StreamGateway

__all__ = [
    "StreamGateway",
]
