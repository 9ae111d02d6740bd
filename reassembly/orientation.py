"""
Orientation Module

This module implements the eight tile orientations (four rotations, each
optionally preceded by a flip) and oriented views: lightweight references to
a tile that read its pixels through a coordinate remap instead of copying
them.
"""

from dataclasses import dataclass

import numpy as np

from data.puzzle_definition import FLIP_STATES, ROTATIONS


def remap(x, y, size, flipped, rotation):
    """
    Map a coordinate of an oriented grid to the native grid.

    The flip is applied first, then the rotation.

    Args:
        x, y: Coordinate in the oriented grid, in [0, size)
        size: Side length of the grid
        flipped: Whether the grid is flipped horizontally
        rotation: One of 0, 90, 180, 270

    Returns:
        (x, y) in the native grid
    """
    e = size - 1
    if flipped:
        x = e - x

    if rotation == 0:
        return x, y
    elif rotation == 90:
        return y, e - x
    elif rotation == 180:
        return x, e - y
    elif rotation == 270:
        return e - y, x
    else:
        raise ValueError(f"Invalid rotation {rotation}, must be in {ROTATIONS}")


@dataclass(frozen=True)
class Orientation:
    """
    One of the eight (flip, rotation) combinations.
    """
    flipped: bool = False
    rotation: int = 0

    def remap(self, x, y, size):
        return remap(x, y, size, self.flipped, self.rotation)

    def compose(self, other):
        """
        Compose two orientations.

        The result maps a coordinate the way `other` does, then feeds the
        result through `self`. Re-orienting a view oriented by `self` by
        `other` gives a view oriented by `self.compose(other)`.

        Args:
            other: Orientation applied first

        Returns:
            Composed Orientation
        """
        return _COMPOSITION[self, other]

    def __str__(self):
        return f"{'flip+' if self.flipped else ''}rot{self.rotation}"


ALL_ORIENTATIONS = tuple(
    Orientation(flipped, rotation)
    for flipped in FLIP_STATES
    for rotation in ROTATIONS
)
IDENTITY = Orientation(False, 0)
ROTATE_90 = Orientation(False, 90)
FLIP = Orientation(True, 0)


def _build_composition_table():
    """
    Compute the composition table of the eight orientations.

    Two orientations are the same map if they agree on every point of a
    3x3 probe grid.
    """
    probe_size = 3
    probe = [(x, y) for y in range(probe_size) for x in range(probe_size)]
    signatures = {
        tuple(o.remap(x, y, probe_size) for x, y in probe): o
        for o in ALL_ORIENTATIONS
    }
    assert len(signatures) == len(ALL_ORIENTATIONS)

    table = {}
    for first in ALL_ORIENTATIONS:
        for second in ALL_ORIENTATIONS:
            composed = tuple(
                first.remap(*second.remap(x, y, probe_size), probe_size)
                for x, y in probe
            )
            table[first, second] = signatures[composed]
    return table


_COMPOSITION = _build_composition_table()


@dataclass(frozen=True)
class OrientedView:
    """
    A tile identifier plus an orientation.

    Every pixel access takes the tile store explicitly; the view itself
    never holds pixel data.
    """
    tile_id: int
    orientation: Orientation = IDENTITY

    def size(self, tiles):
        return tiles[self.tile_id].side

    def edge_length(self, tiles):
        """Largest valid coordinate of the view (tile side minus one)."""
        return tiles[self.tile_id].side - 1

    def pixel(self, tiles, x, y):
        """
        Read one pixel of the oriented tile.

        Args:
            tiles: Tile store holding the referenced tile
            x, y: Coordinate in the oriented tile

        Returns:
            True if the pixel is set
        """
        tile = tiles[self.tile_id]
        return tile[self.orientation.remap(x, y, tile.side)]

    def edge(self, tiles, side):
        """
        Get the pixels along one side of the oriented tile.

        Args:
            tiles: Tile store holding the referenced tile
            side: One of 'top', 'right', 'bottom', 'left'

        Returns:
            Tuple of booleans in increasing coordinate order
        """
        e = self.edge_length(tiles)
        if side == "top":
            coords = [(i, 0) for i in range(e + 1)]
        elif side == "right":
            coords = [(e, i) for i in range(e + 1)]
        elif side == "bottom":
            coords = [(i, e) for i in range(e + 1)]
        elif side == "left":
            coords = [(0, i) for i in range(e + 1)]
        else:
            raise ValueError(f"Invalid side {side!r}")
        return tuple(self.pixel(tiles, x, y) for x, y in coords)

    def reoriented(self, orientation):
        """View of the same tile with `orientation` applied on top."""
        return OrientedView(self.tile_id, self.orientation.compose(orientation))

    def rotated(self):
        return self.reoriented(ROTATE_90)

    def flipped(self):
        return self.reoriented(FLIP)

    def to_array(self, tiles):
        """
        Materialize the oriented pixels.

        Returns:
            Boolean array indexed [y, x]
        """
        n = self.size(tiles)
        return np.array(
            [[self.pixel(tiles, x, y) for x in range(n)] for y in range(n)],
            dtype=bool,
        )

    def __str__(self):
        return f"{self.tile_id}/{self.orientation}"
