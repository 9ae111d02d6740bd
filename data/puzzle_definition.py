"""
Tile Reassembly Puzzle Definition

This file contains the constants for the tile reassembly puzzle,
including the orientation enumeration order, the text pixel format
and the sea monster pattern searched for in the assembled image.
"""
import matplotlib
matplotlib.use('Agg')  # Use non-interactive backend

# Text format of the tiles
TILE_HEADER = "Tile"
SET_PIXEL = '#'
UNSET_PIXEL = '.'

# Orientation enumeration order: flipped variants first, then unflipped,
# each in increasing clockwise rotation
FLIP_STATES = (True, False)
ROTATIONS = (0, 90, 180, 270)

# Width of the border discarded from every tile when assembling the image
TILE_BORDER = 1

# The sea monster, as it appears in the assembled image
SEA_MONSTER = (
    "                  # ",
    "#    ##    ##    ###",
    " #  #  #  #  #  #   ",
)

MONSTER_WIDTH = len(SEA_MONSTER[0])
MONSTER_HEIGHT = len(SEA_MONSTER)

# (dx, dy) offsets of the set cells relative to the top-left anchor
MONSTER_OFFSETS = tuple(
    (dx, dy)
    for dy, row in enumerate(SEA_MONSTER)
    for dx, char in enumerate(row)
    if char == SET_PIXEL
)
MONSTER_CELLS = len(MONSTER_OFFSETS)

assert MONSTER_WIDTH == 20 and MONSTER_HEIGHT == 3 and MONSTER_CELLS == 15

# A solvable puzzle has this many solutions: the whole-board symmetries
BOARD_SYMMETRIES = len(FLIP_STATES) * len(ROTATIONS)

# Image rendering constants (for visualization)
FIGURE_SIZE = 10  # Inches
FIGURE_DPI = 150
PIXEL_COLORS = [
    (13, 27, 42),     # Water (unset pixel)
    (65, 90, 119),    # Rough water (set pixel)
    (224, 122, 95),   # Sea monster
]
