"""
SAT Solver Module for the Tile Reassembly Puzzle

This module encodes the whole placement problem as a SAT formula and solves
it with an incremental SAT solver. It is an alternative backend to the
backtracking search and is also used to enumerate solutions when checking
that a puzzle is well-posed.
"""

import time
from collections import defaultdict
from threading import Timer

from pysat.card import CardEnc, EncType
from pysat.formula import CNF
from pysat.solvers import Solver

from data.puzzle_definition import BOARD_SYMMETRIES
from reassembly.board import Board, Cell


class SATSolver:
    """
    SAT solver for the complete board.

    One variable per (cell, tile, orientation). Every cell holds exactly one
    view, every tile is placed at most once, and a view placed in a cell
    requires a compatible view in the cell to its right and the cell below.
    """

    def __init__(self, tiles, timeout=300, solver_name='glucose4'):
        """
        Initialize the SAT solver.

        Args:
            tiles: Tile store read by every oriented view
            timeout: Solver timeout in seconds (0=no limit)
            solver_name: Name of the pysat solver backend
        """
        self.tiles = tiles
        self.timeout = timeout
        self.solver_name = solver_name

        # Statistics
        self.encoding_time = 0
        self.solving_time = 0
        self.num_variables = 0
        self.num_clauses = 0
        self.interrupted = False

        # Edge tuples per view, filled on first use
        self._edge_cache = {}

    def _edge(self, view, side):
        key = (view, side)
        edge = self._edge_cache.get(key)
        if edge is None:
            edge = view.edge(self.tiles, side)
            self._edge_cache[key] = edge
        return edge

    def _encode_board(self, board):
        """
        Encode a board as a SAT formula.

        Only the candidates still present in each cell get a variable.

        Args:
            board: Board with candidates initialised

        Returns:
            (CNF formula, variable mapping)
        """
        var_map = {}  # Maps (cell index, view) to variable ID
        var_counter = 1

        for index, cell in enumerate(board.cells):
            for view in cell.candidates:
                var_map[(index, view)] = var_counter
                var_counter += 1

        cnf = CNF()

        # Constraint 1: Each cell holds exactly one view
        for index, cell in enumerate(board.cells):
            cell_vars = [var_map[(index, view)] for view in cell.candidates]

            # At least one view in this cell
            cnf.append(cell_vars)

            # At most one view in this cell
            var_counter = self._add_at_most_one(cnf, cell_vars, var_counter)

        # Constraint 2: Each tile is placed at most once
        tile_vars = defaultdict(list)
        for (index, view), var in var_map.items():
            tile_vars[view.tile_id].append(var)

        for tile_id in sorted(tile_vars):
            var_counter = self._add_at_most_one(cnf, tile_vars[tile_id], var_counter)

        # Constraint 3: Matching edges between adjacent cells
        for index in range(len(board.cells)):
            x, y = board.coordinate(index)

            # East neighbour
            if x + 1 < board.side:
                self._add_edge_constraints(cnf, var_map, board, index, index + 1, "right", "left")

            # South neighbour
            if y + 1 < board.side:
                self._add_edge_constraints(cnf, var_map, board, index, index + board.side, "bottom", "top")

        self.num_variables = var_counter - 1
        self.num_clauses = len(cnf.clauses)
        return cnf, var_map

    def _add_at_most_one(self, cnf, lits, var_counter):
        """
        Add an at-most-one constraint with a sequential counter.

        Returns:
            Next free variable ID
        """
        if len(lits) < 2:
            return var_counter

        at_most_one = CardEnc.atmost(
            lits=lits, bound=1, top_id=var_counter - 1,
            encoding=EncType.seqcounter
        )
        cnf.extend(at_most_one.clauses)
        return max(var_counter, at_most_one.nv + 1)

    def _add_edge_constraints(self, cnf, var_map, board, index1, index2, edge1, edge2):
        """
        Add edge matching constraints between two adjacent cells.

        Every view at index1 needs a supporting view at index2 whose edge2
        equals its edge1. Since each cell holds exactly one view, support in
        one direction is enough.

        Args:
            cnf: CNF formula
            var_map: Variable mapping
            board: Board being encoded
            index1, index2: Adjacent cell indices
            edge1, edge2: Sides that touch ('right'/'left' or 'bottom'/'top')
        """
        # Group the neighbour's candidates by the edge they present
        views_by_edge = defaultdict(list)
        for view in board.cells[index2].candidates:
            views_by_edge[self._edge(view, edge2)].append(view)

        for view in board.cells[index1].candidates:
            support = [
                var_map[(index2, other)]
                for other in views_by_edge.get(self._edge(view, edge1), [])
                if other.tile_id != view.tile_id
            ]
            cnf.append([-var_map[(index1, view)]] + support)

    def _solve_cnf(self, solver):
        """
        Run the solver, honouring the timeout.

        Returns:
            True/False, or None if the timeout interrupted the search
        """
        if self.timeout <= 0:
            return solver.solve()

        timer = Timer(self.timeout, solver.interrupt)
        timer.start()
        try:
            result = solver.solve_limited(expect_interrupt=True)
        finally:
            timer.cancel()
        solver.clear_interrupt()

        if result is None:
            self.interrupted = True
        return result

    def _decode_model(self, board, model, var_map):
        """
        Build a solved board from a satisfying assignment.

        Returns:
            (Board, list of the true placement variables)
        """
        true_vars = {lit for lit in model if lit > 0}
        cells = [None] * len(board.cells)
        chosen_vars = []

        for (index, view), var in var_map.items():
            if var in true_vars:
                cells[index] = Cell([view])
                chosen_vars.append(var)

        return Board(board.side, cells), chosen_vars

    def iter_solutions(self, board):
        """
        Enumerate solutions, blocking each one after it is found.

        Args:
            board: Board with candidates initialised

        Yields:
            Solved Boards
        """
        start_time = time.time()
        cnf, var_map = self._encode_board(board)
        self.encoding_time += time.time() - start_time

        with Solver(name=self.solver_name, bootstrap_with=cnf.clauses) as solver:
            while True:
                start_time = time.time()
                result = self._solve_cnf(solver)
                self.solving_time += time.time() - start_time

                if not result:
                    return

                solution, chosen_vars = self._decode_model(board, solver.get_model(), var_map)
                yield solution

                # Block this exact assignment
                solver.add_clause([-var for var in chosen_vars])

    def solve(self, board):
        """
        Find a complete assignment.

        Args:
            board: Board with candidates initialised

        Returns:
            Solved Board, or None if unsatisfiable or interrupted
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
        """Check for exactly one model per whole-board symmetry."""
        return self.count_solutions(board, limit=BOARD_SYMMETRIES + 1) == BOARD_SYMMETRIES

    def get_solver_stats(self):
        """
        Get statistics about the solver process.

        Returns:
            Dictionary of statistics
        """
        return {
            "encoding_time": self.encoding_time,
            "solving_time": self.solving_time,
            "total_time": self.encoding_time + self.solving_time,
            "num_variables": self.num_variables,
            "num_clauses": self.num_clauses,
            "interrupted": self.interrupted,
        }

