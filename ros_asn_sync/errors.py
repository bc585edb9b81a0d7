"""Exceptions raised while synchronizing an ASN with the device."""


class SyncError(Exception):
    """Base class; the runner skips the affected ASN on any of these."""


class ConfigError(SyncError):
    """Bad or missing configuration."""


class CacheIOError(SyncError):
    """Cache file could not be read or written."""


class FetchError(SyncError):
    """Prefix lookup failed (transport, timeout, HTTP status or payload)."""


class DeviceConnectionError(SyncError):
    """Could not connect or log in to the RouterOS API."""


class ProtocolError(SyncError):
    """A RouterOS API command failed mid-synchronization."""
