import logging
from concurrent.futures import ThreadPoolExecutor

from backend import config
from backend.errors import EmptyInputError
from backend.models import AntonymEntry, TasteReport

logger = logging.getLogger(__name__)


class AggregationState:
    """
    Per-request accumulators. A fresh instance is built for every request and
    never shared, so concurrent requests cannot see each other's weights.
    """

    def __init__(self):
        self.genre_weights = {}   # genre -> weight
        self.artist_weights = {}  # artist id -> weight, genres not yet known
        self.artist_genres = {}   # artist id -> genres, from the top artists list
        self.max_weight = 0
        self.total_popularity = 0
        self.min_pop_track = None
        self.min_pop_artist = None

    def add_genre_weight(self, genre, weight, track_max=True):
        total = self.genre_weights.get(genre, 0) + weight
        self.genre_weights[genre] = total
        if track_max and total > self.max_weight:
            self.max_weight = total
        return total


class RankedAggregator:
    """
    Turns the rank-ordered top artists and top tracks into a genre weighting.
    Top tracks are weighted on a larger scale (twice the track count) than
    top artists, so track-derived affinity dominates.
    """

    @staticmethod
    def weigh_artists(state, artists):
        num_artists = len(artists)
        for i, artist in enumerate(artists):
            if state.min_pop_artist is None or artist.popularity < state.min_pop_artist.popularity:
                state.min_pop_artist = artist

            genres = artist.genres or ()
            state.artist_genres[artist.id] = genres
            for genre in genres:
                # Artist ranks do not move the max; only track weights do
                state.add_genre_weight(genre, num_artists - i, track_max=False)

    @staticmethod
    def weigh_tracks(state, tracks):
        big_weight = len(tracks) * 2
        for i, track in enumerate(tracks):
            state.total_popularity += track.popularity
            if state.min_pop_track is None or track.popularity < state.min_pop_track.popularity:
                state.min_pop_track = track

            if not track.artists:
                continue
            share = (big_weight - i) / len(track.artists)
            for artist in track.artists:
                if artist.id in state.artist_genres:
                    for genre in state.artist_genres[artist.id]:
                        state.add_genre_weight(genre, share)
                else:
                    state.artist_weights[artist.id] = state.artist_weights.get(artist.id, 0) + share

    @classmethod
    def aggregate(cls, artists, tracks):
        state = AggregationState()
        cls.weigh_artists(state, artists)
        cls.weigh_tracks(state, tracks)
        logger.debug(
            "aggregated %d genres, %d unresolved artists, max weight %s",
            len(state.genre_weights), len(state.artist_weights), state.max_weight
        )
        return state


class ArtistGenreResolver:
    """
    Looks up genres for artists that only appeared on top tracks and folds
    their accumulated weight into the genre weighting.
    """

    @staticmethod
    def batches(artist_ids, batch_size=config.ARTIST_BATCH_SIZE):
        ids = list(artist_ids)
        return [ids[i:i + batch_size] for i in range(0, len(ids), batch_size)]

    @staticmethod
    def fold(state, artists):
        """Adds each artist's residual weight to every one of its genres."""
        for artist in artists:
            if artist.id not in state.artist_weights:
                continue
            weight = state.artist_weights.pop(artist.id)
            # An artist without genres cannot inform genre affinity; its weight is dropped
            for genre in artist.genres or ():
                state.add_genre_weight(genre, weight)

    @classmethod
    def resolve(cls, state, fetch_artists, batch_size=config.ARTIST_BATCH_SIZE):
        """
        Fetches every batch concurrently and waits for all of them. If any
        batch fails the exception propagates and nothing is folded.
        """
        if not state.artist_weights:
            return state

        batches = cls.batches(state.artist_weights.keys(), batch_size)
        with ThreadPoolExecutor(max_workers=len(batches)) as executor:
            results = list(executor.map(fetch_artists, batches))

        for artists in results:
            cls.fold(state, artists)
        return state


class AntonymProjector:
    """Maps the genre weighting onto opposite genres and ranks them."""

    @staticmethod
    def is_candidate(weight, max_weight):
        # Skips genres that cannot possibly be among the most loved
        return weight * 16 >= max_weight * 10

    @classmethod
    def project(cls, genre_weights, max_weight, table,
                preview_prefix=config.PREVIEW_URL_PREFIX, limit=config.TOP_RESULTS):
        opposites = {}
        for genre, weight in genre_weights.items():
            if not cls.is_candidate(weight, max_weight) or genre not in table:
                continue
            for opposite, multiplier, link in table.opposites(genre):
                entry = opposites.get(opposite)
                if entry is not None:
                    entry.weight += multiplier * weight
                else:
                    opposites[opposite] = AntonymEntry(opposite, multiplier * weight, preview_prefix + link)

        # sorted() is stable, so ties keep first-insertion order
        ranked = sorted(opposites.values(), key=lambda e: e.weight, reverse=True)
        return ranked[:limit]


class ProfileSummarizer:
    """Popularity score, label and images; does not look at genre weights."""

    LABELS = [
        (80, "White girl"),
        (60, "Average"),
        (40, "Indie kid"),
        (20, "Weirdo"),
    ]
    FALLBACK_LABEL = "Apologies for interrupting your grindset"

    @classmethod
    def get_basic_label(cls, score):
        for threshold, label in cls.LABELS:
            if score >= threshold:
                return label
        return cls.FALLBACK_LABEL

    @staticmethod
    def pick_image_url(images, placeholder=config.PLACEHOLDER_IMAGE):
        """Second variant if there is one (thumbnail size), else the only one, else a placeholder."""
        if len(images) > 1:
            return images[1]
        if len(images) == 1:
            return images[0]
        return placeholder

    @classmethod
    def summarize(cls, tracks, total_popularity, min_pop_track, min_pop_artist):
        """
        Builds the profile from the ranked tracks and the popularity totals
        gathered while aggregating, so the lists are only walked once.
        """
        score = total_popularity / len(tracks)
        return {
            "score": score,
            "desc": cls.get_basic_label(score),
            "loves": [cls.pick_image_url(t.album_images) for t in tracks[:config.TOP_RESULTS]],
            "track_name": min_pop_track.name,
            "track_url": cls.pick_image_url(min_pop_track.album_images),
            "artist_name": min_pop_artist.name if min_pop_artist else None,
            "artist_url": cls.pick_image_url(min_pop_artist.images if min_pop_artist else ()),
        }


def analyze_taste(artists, tracks, fetch_artists, table):
    """
    Runs the whole pipeline for one user.
    ``fetch_artists`` takes a list of at most ARTIST_BATCH_SIZE artist ids
    and returns Artist objects with genres. Raises EmptyInputError when there
    are no top tracks and lets UpstreamError from lookups propagate.
    """
    if not tracks:
        raise EmptyInputError("user has no top tracks")

    state = RankedAggregator.aggregate(artists, tracks)
    ArtistGenreResolver.resolve(state, fetch_artists)
    hates = AntonymProjector.project(state.genre_weights, state.max_weight, table)
    summary = ProfileSummarizer.summarize(
        tracks, state.total_popularity, state.min_pop_track, state.min_pop_artist
    )

    return TasteReport(hates=hates, **summary)
