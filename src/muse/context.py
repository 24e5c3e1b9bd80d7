"""Application context for explicit state passing.

Command handlers receive an AppContext instead of reaching for globals,
so tests can hand them a temporary catalog and a fake player.
"""

from dataclasses import dataclass

from muse.core.config import Config, get_socket_path
from muse.domain.catalog.store import CatalogStore
from muse.domain.playback.gateway import PlaybackGateway
from muse.domain.playback.mpv import MpvGateway


@dataclass
class AppContext:
    """State shared by every command handler.

    Attributes:
        config: Application configuration
        store: Catalog of songs and connections
        gateway: Player transport
    """

    config: Config
    store: CatalogStore
    gateway: PlaybackGateway

    @classmethod
    def create(cls, config: Config) -> "AppContext":
        """Create a context backed by the default database and the mpv socket."""
        return cls(
            config=config,
            store=CatalogStore(),
            gateway=MpvGateway(str(get_socket_path(config))),
        )
