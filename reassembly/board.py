"""
Board Solver Module

This module implements the board of candidate cells and the depth-first
backtracking search that assigns one oriented tile to every cell so that all
adjacent edges match. Each placement removes the placed tile from every
later cell; a later cell left without candidates fails the branch at once.
"""

import math
import time
from collections import defaultdict
from dataclasses import dataclass, field

from data.puzzle_definition import BOARD_SYMMETRIES
from reassembly.orientation import ALL_ORIENTATIONS, OrientedView
from reassembly.preprocessing import TileFormatError


class NoSolutionError(RuntimeError):
    """Raised at the boundary when the search exhausts every branch."""


@dataclass
class Cell:
    """
    One board position and its surviving candidate views.
    """
    candidates: list = field(default_factory=list)

    @property
    def chosen(self):
        """The single remaining candidate, or None if unresolved."""
        if len(self.candidates) == 1:
            return self.candidates[0]
        return None

    def copy(self):
        return Cell(list(self.candidates))


class Board:
    """
    A square grid of cells, indexed row-major.
    """

    def __init__(self, side, cells):
        self.side = side
        self.cells = cells

    @classmethod
    def from_tiles(cls, tiles):
        """
        Create a board where every cell may hold any tile in any orientation.

        Candidates are ordered by ascending tile id, then by the fixed
        orientation enumeration order.

        Args:
            tiles: Mapping of tile id to Tile

        Returns:
            Unsolved Board

        Raises:
            TileFormatError: If the tile count is not a perfect square
        """
        side = math.isqrt(len(tiles))
        if side == 0 or side * side != len(tiles):
            raise TileFormatError(f"Tile count {len(tiles)} is not a perfect square")

        all_options = [
            OrientedView(tile_id, orientation)
            for tile_id in sorted(tiles)
            for orientation in ALL_ORIENTATIONS
        ]
        cells = [Cell(list(all_options)) for _ in range(side * side)]
        return cls(side, cells)

    def __getitem__(self, coord):
        x, y = coord
        return self.cells[x + y * self.side]

    def coordinate(self, index):
        """
        Convert a cell index to its coordinate.

        Returns:
            (x, y) tuple
        """
        y, x = divmod(index, self.side)
        return x, y

    def is_solved(self):
        return all(cell.chosen is not None for cell in self.cells)

    def view_at(self, x, y):
        """
        Get the resolved view of a cell.

        Raises:
            ValueError: If the cell is not resolved
        """
        view = self[x, y].chosen
        if view is None:
            raise ValueError(f"Cell ({x}, {y}) is not resolved")
        return view

    def top_left_id(self):
        return self.view_at(0, 0).tile_id

    def corner_ids(self):
        """
        Get the tile ids in the four corners.

        Returns:
            (top_left, top_right, bottom_left, bottom_right)
        """
        e = self.side - 1
        return (
            self.view_at(0, 0).tile_id,
            self.view_at(e, 0).tile_id,
            self.view_at(0, e).tile_id,
            self.view_at(e, e).tile_id,
        )

    def corner_product(self):
        return math.prod(self.corner_ids())

    def solve(self, tiles):
        """Find the first complete assignment, or None."""
        return BoardSolver(tiles).solve(self)

    def solve_or_raise(self, tiles):
        """
        Find the first complete assignment.

        Raises:
            NoSolutionError: If the tiles cannot be assembled
        """
        solution = self.solve(tiles)
        if solution is None:
            raise NoSolutionError(
                f"No arrangement of the {len(self.cells)} tiles matches on every edge"
            )
        return solution



@dataclass
class SearchState:
    """
    Mutable state of one search, undone on backtrack.

    remaining[i] counts the tiles among cell i's candidates that have not
    been placed at an earlier cell. A later cell whose count drops to zero
    has run out of candidates.
    """
    placed: list
    used: set
    remaining: list
    tile_cells: dict


class BoardSolver:
    """
    Backtracking solver with forward checking.

    Cells are filled in row-major order. A candidate must match the resolved
    left and above neighbours; placing it removes its tile from every later
    cell. Placements are made in place and undone on backtrack.
    """

    def __init__(self, tiles):
        """
        Initialize the solver.

        Args:
            tiles: Tile store read by every oriented view
        """
        self.tiles = tiles

        # Edge tuples per view, filled on first use
        self._edge_cache = {}

        # Candidate lists indexed by left and top edge, per distinct list
        self._index_cache = {}

        # Statistics
        self.nodes_visited = 0
        self.candidates_rejected = 0
        self.branches_pruned = 0
        self.solutions_found = 0
        self.solving_time = 0

    def _edge(self, view, side):
        key = (view, side)
        edge = self._edge_cache.get(key)
        if edge is None:
            edge = view.edge(self.tiles, side)
            self._edge_cache[key] = edge
        return edge

    def _cell_index(self, cell):
        """
        Index a cell's candidates by the edges its neighbours constrain.

        Every list in the index keeps the candidates' enumeration order.

        Returns:
            (candidates, views by left edge, views by top edge)
        """
        key = tuple(cell.candidates)
        index = self._index_cache.get(key)
        if index is None:
            by_left = defaultdict(list)
            by_top = defaultdict(list)
            for view in key:
                by_left[self._edge(view, "left")].append(view)
                by_top[self._edge(view, "top")].append(view)
            index = (key, dict(by_left), dict(by_top))
            self._index_cache[key] = index
        return index

    def _options(self, cell_index, left, above):
        """Candidates that can match the left neighbour, or the one above."""
        views, by_left, by_top = cell_index
        if left is not None:
            return by_left.get(self._edge(left, "right"), ())
        if above is not None:
            return by_top.get(self._edge(above, "bottom"), ())
        return views

    def _matches(self, option, left, above):
        """
        Check a candidate against its resolved neighbours.

        Args:
            option: Candidate OrientedView
            left: View to the left, or None in the first column
            above: View above, or None in the first row

        Returns:
            True if every shared edge pixel agrees
        """
        if left is not None and self._edge(left, "right") != self._edge(option, "left"):
            return False
        if above is not None and self._edge(above, "bottom") != self._edge(option, "top"):
            return False
        return True

    def _place(self, state, index, option):
        """
        Pin `option` at `index` and remove its tile from every later cell.

        Returns:
            False if some later cell ran out of candidates
        """
        state.placed[index] = option
        state.used.add(option.tile_id)

        feasible = True
        for later in state.tile_cells[option.tile_id]:
            if later > index:
                state.remaining[later] -= 1
                if state.remaining[later] == 0:
                    feasible = False
        return feasible

    def _unplace(self, state, index, option):
        state.placed[index] = None
        state.used.discard(option.tile_id)
        for later in state.tile_cells[option.tile_id]:
            if later > index:
                state.remaining[later] += 1

    def _search(self, board, indexes, state, index):
        """
        Yield every complete assignment reachable from the current state.

        Args:
            board: Board being solved, read for its shape
            indexes: Per-cell candidate indexes
            state: SearchState with the cells before `index` placed
            index: Next cell to fill
        """
        self.nodes_visited += 1

        if index >= len(board.cells):
            self.solutions_found += 1
            yield Board(board.side, [Cell([view]) for view in state.placed])
            return

        x, y = board.coordinate(index)
        left = state.placed[index - 1] if x > 0 else None
        above = state.placed[index - board.side] if y > 0 else None

        for option in self._options(indexes[index], left, above):
            if option.tile_id in state.used or not self._matches(option, left, above):
                self.candidates_rejected += 1
                continue

            if self._place(state, index, option):
                yield from self._search(board, indexes, state, index + 1)
            else:
                self.branches_pruned += 1
            self._unplace(state, index, option)

    def _start(self, board):
        """Build the per-cell indexes and the initial search state."""
        indexes = []
        tile_cells = defaultdict(list)
        remaining = []
        for index, cell in enumerate(board.cells):
            indexes.append(self._cell_index(cell))
            cell_tiles = {view.tile_id for view in cell.candidates}
            for tile_id in cell_tiles:
                tile_cells[tile_id].append(index)
            remaining.append(len(cell_tiles))

        state = SearchState(
            placed=[None] * len(board.cells),
            used=set(),
            remaining=remaining,
            tile_cells=tile_cells,
        )
        return indexes, state

    def iter_solutions(self, board):
        """
        Lazily enumerate complete assignments in fixed enumeration order.

        The input board is not modified.

        Args:
            board: Board with candidates initialised (see Board.from_tiles)

        Yields:
            Solved Boards
        """
        start_time = time.time()
        try:
            indexes, state = self._start(board)
            yield from self._search(board, indexes, state, 0)
        finally:
            self.solving_time += time.time() - start_time

    def solve(self, board):
        """
        Find the first complete assignment.

        Args:
            board: Board with candidates initialised

        Returns:
            Solved Board, or None if no assignment exists
        """
        solutions = self.iter_solutions(board)
        try:
            return next(solutions, None)
        finally:
            solutions.close()

    def count_solutions(self, board, limit=None):
        """
        Count complete assignments, stopping at `limit`.

        Args:
            board: Board with candidates initialised
            limit: Maximum number of solutions to count (None=all)

        Returns:
            Number of solutions found
        """
        count = 0
        solutions = self.iter_solutions(board)
        try:
            for _ in solutions:
                count += 1
                if limit is not None and count >= limit:
                    break
        finally:
            solutions.close()
        return count

    def is_unique(self, board):
        """
        Check that the tiling is unique up to whole-board symmetry.

        Every tiling shows up once per symmetry of the board, so a
        well-posed puzzle has exactly that many solutions.
        """
        return self.count_solutions(board, limit=BOARD_SYMMETRIES + 1) == BOARD_SYMMETRIES

    def get_solver_stats(self):
        """
        Get statistics about the search.

        Returns:
            Dictionary of statistics
        """
        return {
            "nodes_visited": self.nodes_visited,
            "candidates_rejected": self.candidates_rejected,
            "branches_pruned": self.branches_pruned,
            "solutions_found": self.solutions_found,
            "solving_time": self.solving_time,
        }
