"""
Genre antonym reference table.
Maps a genre to the genres that sound least like it, each with a weight
multiplier and a sample preview identifier. Built once at startup and
shared read-only between requests.
"""
import csv
import json
import logging
from types import MappingProxyType

from backend.errors import GenreTableError

logger = logging.getLogger(__name__)


def parse_list_cell(cell):
    """
    Parses a bracketed list of quoted strings, e.g. ["a","b"].
    json.loads() chokes on some characters found in genre names, so the
    cell is split by hand: strip the brackets, split on commas, then strip
    one quote character off each end.
    """
    inner = cell.strip()[1:-1]
    if not inner:
        return []
    return [item[1:-1] for item in inner.split(',')]


class GenreAntonymTable:
    def __init__(self, entries):
        checked = {}
        for genre, (opposites, weights, links) in entries.items():
            if not (len(opposites) == len(weights) == len(links)):
                raise GenreTableError(
                    f"Misaligned antonym data for '{genre}': "
                    f"{len(opposites)} genres, {len(weights)} weights, {len(links)} links"
                )
            checked[genre] = (tuple(opposites), tuple(float(w) for w in weights), tuple(links))
        self._entries = MappingProxyType(checked)

    @classmethod
    def load(cls, path):
        """Loads the table from a CSV with genre, opps, weights and links columns."""
        entries = {}
        try:
            with open(path, newline='', encoding='utf-8') as f:
                for row in csv.DictReader(f):
                    entries[row['genre']] = (
                        parse_list_cell(row['opps']),
                        json.loads(row['weights']),
                        parse_list_cell(row['links'])
                    )
        except (OSError, KeyError, AttributeError, TypeError, ValueError) as e:
            raise GenreTableError(f"Could not load genre table from {path}: {e}") from e

        table = cls(entries)
        logger.info("genres loaded (%d source genres)", len(table))
        return table

    def __contains__(self, genre):
        return genre in self._entries

    def __len__(self):
        return len(self._entries)

    def get(self, genre):
        """Returns (opposites, weights, links) for a genre, or None."""
        return self._entries.get(genre)

    def opposites(self, genre):
        """Yields aligned (opposite, multiplier, link) triples for a genre."""
        entry = self._entries.get(genre)
        if entry is None:
            return
        yield from zip(*entry)
