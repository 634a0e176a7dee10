from music_catalog.models.album import Album
from music_catalog.models.artist import Artist
from music_catalog.models.track import Track
from music_catalog.models.concert import Concert
from music_catalog.models.concert_artist import ConcertArtist, ConcertArtistRole

__all__ = [
    "Album",
    "Artist",
    "Track",
    "Concert",
    "ConcertArtist",
    "ConcertArtistRole",
]
