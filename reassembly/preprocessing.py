"""
Preprocessing Module for the Tile Reassembly Solver

This module handles parsing of the tile text format into an immutable tile
store, and the creation of an edge lookup table used to identify which tiles
can be neighbours and which tiles must sit in the corners.
"""

import math
import re
import sys
from collections import defaultdict
from collections.abc import Mapping
from dataclasses import dataclass

import numpy as np

from data.puzzle_definition import TILE_HEADER, SET_PIXEL, UNSET_PIXEL

HEADER_PATTERN = re.compile(r"^%s\s+(\d+)\s*:\s*$" % TILE_HEADER)
ROW_PATTERN = re.compile(r"^[%s%s]+$" % (re.escape(SET_PIXEL), re.escape(UNSET_PIXEL)))


class TileFormatError(ValueError):
    """Raised when the tile input is malformed or inconsistent."""


@dataclass(frozen=True, eq=False)
class Tile:
    """
    A square grid of pixels with its identifier.

    Pixels are indexed as pixels[y, x] and stored read-only.
    """
    id: int
    side: int
    pixels: np.ndarray

    def __getitem__(self, coord):
        x, y = coord
        return bool(self.pixels[y, x])

    def edges(self):
        """
        Get the four edges of the tile in its native orientation.

        Returns:
            Tuple of (top, right, bottom, left) edges as tuples of booleans
        """
        p = self.pixels
        return (
            tuple(bool(v) for v in p[0, :]),
            tuple(bool(v) for v in p[:, -1]),
            tuple(bool(v) for v in p[-1, :]),
            tuple(bool(v) for v in p[:, 0]),
        )


def make_tile(tile_id, rows):
    """
    Build a tile from its text rows.

    Args:
        tile_id: Identifier of the tile
        rows: List of strings made of SET_PIXEL / UNSET_PIXEL characters

    Returns:
        Tile with a read-only boolean pixel array

    Raises:
        TileFormatError: If the rows do not form a square grid
    """
    if not rows:
        raise TileFormatError(f"Tile {tile_id} has no pixel rows")

    side = len(rows[0])
    for row in rows:
        if len(row) != side:
            raise TileFormatError(
                f"Tile {tile_id} has rows of different widths ({side} and {len(row)})"
            )
    if len(rows) != side:
        raise TileFormatError(f"Tile {tile_id} is {side} wide but {len(rows)} tall")

    pixels = np.array([[char == SET_PIXEL for char in row] for row in rows], dtype=bool)
    pixels.setflags(write=False)
    return Tile(id=tile_id, side=side, pixels=pixels)


class TileStore(Mapping):
    """
    Read-only mapping from tile identifier to Tile.

    All tiles share one side length, and the number of tiles is a perfect
    square so they can be laid out on a square board.
    """

    def __init__(self, tiles):
        """
        Initialize the store.

        Args:
            tiles: Iterable of Tile

        Raises:
            TileFormatError: On duplicate ids, mixed sizes, or a tile count
                that is not a perfect square
        """
        self._tiles = {}
        for tile in tiles:
            if tile.id in self._tiles:
                raise TileFormatError(f"Duplicate tile id {tile.id}")
            self._tiles[tile.id] = tile

        if not self._tiles:
            raise TileFormatError("No tiles found in input")

        sides = {tile.side for tile in self._tiles.values()}
        if len(sides) != 1:
            raise TileFormatError(f"Tiles have different side lengths: {sorted(sides)}")
        self.side = sides.pop()

        board_side = math.isqrt(len(self._tiles))
        if board_side * board_side != len(self._tiles):
            raise TileFormatError(
                f"Tile count {len(self._tiles)} is not a perfect square"
            )
        self.board_side = board_side

    def __getitem__(self, tile_id):
        return self._tiles[tile_id]

    def __iter__(self):
        return iter(self._tiles)

    def __len__(self):
        return len(self._tiles)

    def ids(self):
        """Tile identifiers in ascending order."""
        return sorted(self._tiles)


def parse_tiles(text):
    """
    Parse the tile text format.

    Each tile is a header line 'Tile <id>:' followed by its pixel rows.
    Blank lines between tiles are ignored.

    Args:
        text: Full input text

    Returns:
        TileStore holding every parsed tile

    Raises:
        TileFormatError: If the text is malformed
    """
    tiles = []
    current_id = None
    current_rows = []

    for line_number, raw_line in enumerate(text.splitlines(), 1):
        line = raw_line.strip()
        if not line:
            continue

        header = HEADER_PATTERN.match(line)
        if header:
            if current_id is not None:
                tiles.append(make_tile(current_id, current_rows))
            current_id = int(header.group(1))
            current_rows = []
        elif ROW_PATTERN.match(line):
            if current_id is None:
                raise TileFormatError(f"Line {line_number}: pixel row before any tile header")
            current_rows.append(line)
        else:
            raise TileFormatError(f"Line {line_number}: unexpected content {line!r}")

    if current_id is not None:
        tiles.append(make_tile(current_id, current_rows))

    return TileStore(tiles)


def load_tiles(path):
    """
    Load a tile store from a file, or from stdin when path is '-'.

    Args:
        path: Path of the tile text file

    Returns:
        TileStore
    """
    if path == "-":
        return parse_tiles(sys.stdin.read())
    with open(path) as f:
        return parse_tiles(f.read())


def canonical_edge(edge):
    """
    Get the orientation-independent form of an edge.

    An edge read from the other end is the same edge once the tile is
    flipped, so both readings map to the smaller of the two.
    """
    edge = tuple(edge)
    return min(edge, edge[::-1])


class TilePreprocessor:
    """
    Builds edge lookup tables over a tile store.
    """

    def __init__(self, tiles):
        """
        Initialize the preprocessor.

        Args:
            tiles: TileStore to index
        """
        self.tiles = tiles

        # Maps canonical edge to the list of tile ids carrying it
        self.edge_tile_map = defaultdict(list)

        self._preprocess_tiles()

    def _preprocess_tiles(self):
        """Index all edges of all tiles."""
        for tile_id in self.tiles.ids():
            for edge in self.tiles[tile_id].edges():
                self.edge_tile_map[canonical_edge(edge)].append(tile_id)

    def get_matching_tiles(self, edge):
        """
        Get all tiles that carry the given edge in some orientation.

        Args:
            edge: Sequence of booleans

        Returns:
            List of tile ids
        """
        return list(self.edge_tile_map.get(canonical_edge(edge), []))

    def unmatched_edge_count(self, tile_id):
        """
        Count the edges of a tile that no other tile can match.

        Args:
            tile_id: ID of the tile

        Returns:
            Number of edges (0-4) without a partner
        """
        count = 0
        for edge in self.tiles[tile_id].edges():
            partners = [t for t in self.edge_tile_map[canonical_edge(edge)] if t != tile_id]
            if not partners:
                count += 1
        return count

    def corner_candidates(self):
        """
        Get the tiles that must sit in a corner of the board.

        Returns:
            Sorted list of tile ids with exactly two unmatched edges
        """
        return [
            tile_id for tile_id in self.tiles.ids()
            if self.unmatched_edge_count(tile_id) == 2
        ]
