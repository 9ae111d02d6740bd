"""Shared pytest fixtures for the reassembly tests."""

from dataclasses import dataclass

import numpy as np
import pytest

from data.puzzle_definition import SEA_MONSTER, SET_PIXEL, UNSET_PIXEL
from reassembly.preprocessing import canonical_edge, parse_tiles


@dataclass
class Puzzle:
    """A generated puzzle and the layout it was cut from."""
    text: str
    tiles: object
    layout: dict          # (x, y) -> tile id
    interior: np.ndarray  # The image the tiles were cut from, indexed [y, x]

    @property
    def corner_ids(self):
        e = max(x for x, _ in self.layout)
        return sorted(self.layout[x, y] for x in (0, e) for y in (0, e))


class ArrayImage:
    """Minimal image backed by a boolean array."""

    def __init__(self, pixels):
        self.pixels = np.asarray(pixels, dtype=bool)
        self.size = self.pixels.shape[0]

    def pixel(self, x, y):
        return bool(self.pixels[y, x])


def tile_text(tile_id, pixels):
    rows = ["".join(SET_PIXEL if v else UNSET_PIXEL for v in row) for row in pixels]
    return f"Tile {tile_id}:\n" + "\n".join(rows) + "\n"


def cut_tiles(interior, board_side, tile_side, rng):
    """
    Cut an interior image into bordered tiles with shared random seams.

    Returns:
        Dict (x, y) -> tile pixel array, in solved orientation
    """
    n = tile_side - 2
    corners = rng.random((board_side + 1, board_side + 1)) < 0.5
    horizontal = rng.random((board_side + 1, board_side, n)) < 0.5
    vertical = rng.random((board_side, board_side + 1, n)) < 0.5

    arrays = {}
    for y in range(board_side):
        for x in range(board_side):
            a = np.zeros((tile_side, tile_side), dtype=bool)
            a[1:-1, 1:-1] = interior[y * n:(y + 1) * n, x * n:(x + 1) * n]
            a[0, 0], a[0, -1] = corners[y, x], corners[y, x + 1]
            a[-1, 0], a[-1, -1] = corners[y + 1, x], corners[y + 1, x + 1]
            a[0, 1:-1] = horizontal[y, x]
            a[-1, 1:-1] = horizontal[y + 1, x]
            a[1:-1, 0] = vertical[y, x]
            a[1:-1, -1] = vertical[y, x + 1]
            arrays[x, y] = a
    return arrays


def has_distinct_edges(arrays, board_side):
    """True if no two edges coincide except the seams neighbours share."""
    edges = set()
    for a in arrays.values():
        for edge in (a[0, :], a[:, -1], a[-1, :], a[:, 0]):
            edges.add(canonical_edge(bool(v) for v in edge))
    return len(edges) == 2 * board_side * (board_side - 1) + 4 * board_side


def build_puzzle(interior, board_side, tile_side, seed=0, unique=True):
    """
    Generate a scrambled puzzle whose assembled image is `interior`.

    With unique=True, seeds are tried from `seed` upwards until every edge
    class is distinct, so the tiling is unique up to board symmetry.
    """
    interior = np.asarray(interior, dtype=bool)
    assert interior.shape == (board_side * (tile_side - 2),) * 2

    while True:
        rng = np.random.default_rng(seed)
        arrays = cut_tiles(interior, board_side, tile_side, rng)
        if not unique or has_distinct_edges(arrays, board_side):
            break
        seed += 1

    ids = rng.choice(np.arange(1000, 10000), size=board_side * board_side, replace=False)
    layout = {}
    blocks = []
    for (pos, a), tile_id in zip(sorted(arrays.items()), ids):
        a = np.rot90(a, k=int(rng.integers(4)))
        if rng.integers(2):
            a = np.fliplr(a)
        layout[pos] = int(tile_id)
        blocks.append(tile_text(int(tile_id), a))

    text = "\n".join(blocks)
    return Puzzle(text=text, tiles=parse_tiles(text), layout=layout, interior=interior)


def monster_interior(size, anchor, strays=()):
    """An empty image with one sea monster at `anchor` and a few stray pixels."""
    interior = np.zeros((size, size), dtype=bool)
    ax, ay = anchor
    for dy, row in enumerate(SEA_MONSTER):
        for dx, char in enumerate(row):
            if char == SET_PIXEL:
                interior[ay + dy, ax + dx] = True
    for x, y in strays:
        interior[y, x] = True
    return interior


@pytest.fixture
def make_puzzle():
    """Factory for generated puzzles."""
    return build_puzzle


@pytest.fixture
def tiny_puzzle():
    """2x2 board of 3x3 tiles (every tile is a corner)."""
    interior = np.array([[1, 0], [0, 1]], dtype=bool)
    return build_puzzle(interior, board_side=2, tile_side=3, seed=7, unique=False)


@pytest.fixture
def unique_puzzle():
    """3x3 board of 10x10 tiles with a random interior and distinct edges."""
    rng = np.random.default_rng(2020)
    interior = rng.random((24, 24)) < 0.3
    return build_puzzle(interior, board_side=3, tile_side=10, seed=1)


@pytest.fixture
def monster_strays():
    return [(0, 22), (7, 23), (15, 21)]


@pytest.fixture
def monster_puzzle(monster_strays):
    """3x3 board whose image holds one sea monster and three stray pixels."""
    interior = monster_interior(24, anchor=(2, 5), strays=monster_strays)
    return build_puzzle(interior, board_side=3, tile_side=10, seed=20)


@pytest.fixture
def unsolvable_tiles():
    """Three blank tiles and one solid tile: the solid tile never fits."""
    blank = np.zeros((3, 3), dtype=bool)
    solid = np.ones((3, 3), dtype=bool)
    text = "\n".join([
        tile_text(11, blank),
        tile_text(13, blank),
        tile_text(17, blank),
        tile_text(19, solid),
    ])
    return parse_tiles(text)
