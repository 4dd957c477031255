class Artist:
    """An artist as reported by the music service.

    ``genres`` is None for the artist stubs embedded in a track, whose genres
    have to be looked up separately.
    """

    def __init__(self, id, name, popularity=0, genres=None, images=None, rank=None):
        self.id = id
        self.name = name
        self.popularity = popularity
        self.genres = tuple(genres) if genres is not None else None
        self.images = tuple(images or ())
        self.rank = rank

    @classmethod
    def from_api(cls, data, rank=None):
        return cls(
            id=data['id'],
            name=data.get('name'),
            popularity=int(data.get('popularity') or 0),
            genres=data.get('genres'),
            images=[img['url'] for img in data.get('images') or []],
            rank=rank
        )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "popularity": self.popularity,
            "genres": list(self.genres) if self.genres is not None else None,
            "images": list(self.images),
            "rank": self.rank
        }


class Track:
    def __init__(self, id, name, popularity=0, artists=None, album_images=None, rank=None):
        self.id = id
        self.name = name
        self.popularity = popularity
        self.artists = tuple(artists or ())
        self.album_images = tuple(album_images or ()) # Ordered by resolution, largest first
        self.rank = rank

    @classmethod
    def from_api(cls, data, rank=None):
        album = data.get('album') or {}
        return cls(
            id=data['id'],
            name=data.get('name'),
            popularity=int(data.get('popularity') or 0),
            artists=[Artist.from_api(a) for a in data.get('artists') or []],
            album_images=[img['url'] for img in album.get('images') or []],
            rank=rank
        )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "popularity": self.popularity,
            "artists": [a.id for a in self.artists],
            "album_images": list(self.album_images),
            "rank": self.rank
        }


class AntonymEntry:
    """An opposite genre being accumulated during projection."""

    def __init__(self, genre, weight, url):
        self.genre = genre
        self.weight = weight
        self.url = url

    def to_dict(self):
        return {
            "genre": self.genre,
            "weight": self.weight,
            "url": self.url
        }


class TasteReport:
    def __init__(self, hates, score, desc, loves, track_name, track_url, artist_name, artist_url):
        self.hates = hates
        self.score = score
        self.desc = desc
        self.loves = loves
        self.track_name = track_name
        self.track_url = track_url
        self.artist_name = artist_name
        self.artist_url = artist_url

    def to_dict(self):
        # Keys match what the results page consumes
        return {
            "loves": self.loves,
            "hates": [h.to_dict() for h in self.hates],
            "score": self.score,
            "desc": self.desc,
            "trackUrl": self.track_url,
            "trackName": self.track_name,
            "artistUrl": self.artist_url,
            "artistName": self.artist_name
        }
