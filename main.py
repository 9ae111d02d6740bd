#!/usr/bin/env python3
"""
Tile Reassembly Solver - Main Entry Point

This script orchestrates the tile reassembly pipeline: parse the tiles,
solve the board, assemble the image and scan it for sea monsters.
"""

import argparse
import os
import sys
import time
import numpy as np
import torch

from data.puzzle_definition import BOARD_SYMMETRIES
from reassembly.preprocessing import TilePreprocessor, TileFormatError, load_tiles
from reassembly.board import Board, BoardSolver, NoSolutionError
from reassembly.sat_solver import SATSolver
from reassembly.image import AssembledImage
from reassembly.monster import PatternNotFoundError, find_matches, find_roughness
from reassembly.utils import visualize_image, print_solution_stats


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='Tile Reassembly Solver')

    # Input/output
    parser.add_argument('input', type=str,
                        help="Tile text file ('-' reads stdin)")
    parser.add_argument('--visualize', type=str, default=None,
                        help='Save a rendering of the assembled image to this PNG file')

    # Solver options
    parser.add_argument('--backend', choices=['backtrack', 'sat'], default='backtrack',
                        help='Search backend used to place the tiles. The checksum and '
                             'roughness do not depend on it; backtrack reports the first '
                             'layout in enumeration order, sat reports whichever symmetric '
                             'layout the solver finds, so the top-left id and the image '
                             'orientation can differ')
    parser.add_argument('--sat-timeout', type=int, default=300,
                        help='Timeout for the SAT solver in seconds')
    parser.add_argument('--verify-unique', action='store_true',
                        help='Check that the tiling is unique up to board symmetry')

    # General options
    parser.add_argument('--use-gpu', action='store_true',
                        help='Scan for sea monsters with a convolution on the GPU if available')
    parser.add_argument('--verbose', action='store_true',
                        help='Enable verbose output')

    return parser.parse_args(argv)


def setup_environment(args):
    """Set up the environment based on arguments."""
    # Check GPU availability
    if args.use_gpu and not torch.cuda.is_available():
        print("WARNING: GPU requested but not available. Using CPU instead.", file=sys.stderr)

    # Print environment info
    if args.verbose:
        print(f"Environment:")
        print(f"  Python: {sys.version.split()[0]}")
        print(f"  NumPy: {np.__version__}")
        print(f"  PyTorch: {torch.__version__}")
        print(f"  GPU Available: {torch.cuda.is_available()}")


def make_solver(tiles, args):
    """Create the solver selected on the command line."""
    if args.backend == 'sat':
        return SATSolver(tiles, timeout=args.sat_timeout)
    return BoardSolver(tiles)


def run_solve_phase(tiles, args):
    """Run the board solving phase."""
    if args.verbose:
        print(f"\n=== Running Solve Phase ({args.backend}) ===")

    board = Board.from_tiles(tiles)
    solver = make_solver(tiles, args)

    start_time = time.time()
    solution = solver.solve(board)
    elapsed_time = time.time() - start_time

    if solution is None:
        raise NoSolutionError(f"No arrangement of the {len(tiles)} tiles matches on every edge")

    if args.verbose:
        print(f"Solve completed in {elapsed_time:.2f} seconds")
        for name, value in solver.get_solver_stats().items():
            print(f"  {name}: {value}")

    if args.verify_unique:
        if make_solver(tiles, args).is_unique(board):
            print("Tiling is unique up to board symmetry", file=sys.stderr)
        else:
            print(f"WARNING: tiling is not unique up to board symmetry "
                  f"(expected {BOARD_SYMMETRIES} solutions); reporting the one found", file=sys.stderr)

    return solution


def run_scan_phase(image, args):
    """Run the sea monster scanning phase."""
    if args.verbose:
        print("\n=== Running Scan Phase ===")

    use_conv = args.use_gpu
    device = 'cuda' if args.use_gpu and torch.cuda.is_available() else None

    start_time = time.time()
    orientation, match_count, roughness = find_roughness(image, use_conv=use_conv, device=device)
    elapsed_time = time.time() - start_time

    if args.verbose:
        print(f"Scan completed in {elapsed_time:.2f} seconds")
        print(f"  Orientation: {orientation}")
        print(f"  Sea monsters: {match_count}")

    if args.visualize:
        oriented = image.reoriented(orientation)
        os.makedirs(os.path.dirname(os.path.abspath(args.visualize)), exist_ok=True)
        visualize_image(
            oriented,
            anchors=find_matches(oriented),
            filename=args.visualize,
            show=False,
        )
        if args.verbose:
            print(f"Visualization saved to {args.visualize}")

    return roughness


def main(argv=None):
    """Main entry point."""
    # Parse arguments
    args = parse_arguments(argv)

    # Set up environment
    setup_environment(args)

    # Record start time
    total_start_time = time.time()

    try:
        tiles = load_tiles(args.input)
    except (OSError, UnicodeDecodeError) as e:
        print(f"error: cannot read {args.input}: {e}", file=sys.stderr)
        return 1
    except TileFormatError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    try:
        if args.verbose:
            print(f"\n=== Loaded {len(tiles)} tiles of {tiles.side}x{tiles.side} pixels ===")

        solution = run_solve_phase(tiles, args)

        print(solution.top_left_id())
        print(solution.corner_product())

        image = AssembledImage(solution, tiles)
        for line in image.render():
            print(line)

        roughness = run_scan_phase(image, args)
        print(roughness)
    except (TileFormatError, NoSolutionError, PatternNotFoundError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    if args.verbose:
        print("\n=== Final Solution Statistics ===")
        print_solution_stats(solution, tiles, TilePreprocessor(tiles))

        total_time = time.time() - total_start_time
        print(f"\nTotal execution time: {total_time:.2f} seconds")

    return 0


if __name__ == "__main__":
    sys.exit(main())
