"""Remote store transports."""

from farmsync.remote.base import RemoteClient, RemoteError

__all__ = ["RemoteClient", "RemoteError"]
