"""Storage interfaces and the in-memory implementation."""

from canonsync_store.base import EpisodeStore, SeriesStore
from canonsync_store.memory import InMemoryEpisodeStore, InMemorySeriesStore

__all__ = [
    "EpisodeStore",
    "InMemoryEpisodeStore",
    "InMemorySeriesStore",
    "SeriesStore",
]
