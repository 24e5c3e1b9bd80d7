"""Muse exceptions for error handling."""


class MuseError(Exception):
    """Base exception for Muse operations."""

    pass


class SongNotFoundError(MuseError):
    """Raised when a search matches no song in the catalog."""

    def __init__(self, query: str, message: str = None):
        self.query = query
        super().__init__(message or f"No song found matching: '{query}'")


class EmptyCatalogError(MuseError):
    """Raised when the catalog has no songs to sample."""

    def __init__(self, message: str = None):
        super().__init__(
            message or "No songs available. Run 'muse update <music dir>' first."
        )


class GatewayUnavailableError(MuseError):
    """Raised when the playback transport cannot be reached."""

    pass


class StoreContentionError(MuseError):
    """Raised when a catalog write keeps losing the database lock."""

    pass
