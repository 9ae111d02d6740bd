"""
Utilities Module for the Tile Reassembly Solver

This module provides visualization and statistics helpers for solved boards
and assembled images.
"""

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.colors import ListedColormap

from data.puzzle_definition import FIGURE_SIZE, FIGURE_DPI, PIXEL_COLORS
from reassembly.monster import monster_mask


def visualize_image(image, anchors=(), filename=None, show=True, title=None):
    """
    Visualize an assembled image with the sea monsters highlighted.

    Args:
        image: AssembledImage in the orientation the anchors refer to
        anchors: List of (x, y) monster anchors
        filename: If provided, save the visualization to this file
        show: Whether to display the visualization
        title: Optional title for the visualization
    """
    fig, ax = plt.subplots(figsize=(FIGURE_SIZE, FIGURE_SIZE))

    # 0 = water, 1 = rough water, 2 = monster
    layers = image.to_array().astype(np.uint8)
    layers[monster_mask(image, anchors)] = 2

    cmap = ListedColormap([tuple(c / 255 for c in color) for color in PIXEL_COLORS])
    ax.imshow(layers, cmap=cmap, vmin=0, vmax=len(PIXEL_COLORS) - 1, interpolation='nearest')

    # Draw tile boundaries
    for i in range(1, image.board.side):
        ax.axhline(i * image.tile_size - 0.5, color='white', linewidth=0.3, alpha=0.5)
        ax.axvline(i * image.tile_size - 0.5, color='white', linewidth=0.3, alpha=0.5)

    # Set title
    if title:
        ax.set_title(title)
    else:
        ax.set_title(f'Assembled Image - {len(anchors)} sea monsters ({image.orientation})')

    # Turn off axis ticks
    ax.set_xticks([])
    ax.set_yticks([])

    # Save figure if filename provided
    if filename:
        plt.savefig(filename, dpi=FIGURE_DPI, bbox_inches='tight')

    # Show figure if requested
    if show:
        plt.show()
    else:
        plt.close(fig)


def count_matching_edges(board, tiles):
    """
    Count the interior seams of a solved board whose edge pixels agree.

    Args:
        board: Solved Board
        tiles: Tile store

    Returns:
        (horizontal matches, vertical matches)
    """
    horizontal_matches = 0
    for y in range(board.side):
        for x in range(board.side - 1):
            left = board.view_at(x, y)
            right = board.view_at(x + 1, y)
            if left.edge(tiles, "right") == right.edge(tiles, "left"):
                horizontal_matches += 1

    vertical_matches = 0
    for y in range(board.side - 1):
        for x in range(board.side):
            above = board.view_at(x, y)
            below = board.view_at(x, y + 1)
            if above.edge(tiles, "bottom") == below.edge(tiles, "top"):
                vertical_matches += 1

    return horizontal_matches, vertical_matches


def print_solution_stats(board, tiles, preprocessor=None):
    """
    Print statistics about a solved board.

    Args:
        board: Solved Board
        tiles: Tile store
        preprocessor: Optional TilePreprocessor to cross-check the corners
    """
    side = board.side
    seams = side * (side - 1)
    horizontal_matches, vertical_matches = count_matching_edges(board, tiles)

    print(f"Solution Statistics:")
    print(f"  Board: {side}x{side} tiles of {tiles[board.top_left_id()].side}x{tiles[board.top_left_id()].side} pixels")
    print(f"  Horizontal Matches: {horizontal_matches}/{seams}")
    print(f"  Vertical Matches: {vertical_matches}/{seams}")

    # Check for duplicate tiles
    used_tiles = {}
    for index in range(len(board.cells)):
        x, y = board.coordinate(index)
        tile_id = board.view_at(x, y).tile_id
        used_tiles.setdefault(tile_id, []).append((x, y))

    duplicates = {tid: positions for tid, positions in used_tiles.items() if len(positions) > 1}
    if duplicates:
        print(f"  Duplicate Tiles Found:")
        for tid, positions in duplicates.items():
            print(f"    Tile {tid} used at positions: {positions}")
    else:
        print(f"  No duplicate tiles found.")

    corners = sorted(board.corner_ids())
    print(f"  Corner Tiles: {corners}")
    if preprocessor is not None and side > 1:
        expected = preprocessor.corner_candidates()
        if expected == corners:
            print(f"  Corners agree with the edge index.")
        else:
            print(f"  Edge index suggests corners {expected}")
