"""
Image Assembly Module

This module stitches the tiles of a solved board into one image. The image
is a computed view: every pixel read maps the global coordinate through the
image orientation, then into the interior of the tile that covers it. Tile
borders are not part of the image.
"""

import numpy as np

from data.puzzle_definition import SET_PIXEL, UNSET_PIXEL, TILE_BORDER
from reassembly.orientation import ALL_ORIENTATIONS, IDENTITY


class AssembledImage:
    """
    Borderless composite of a solved board, in one of eight orientations.
    """

    def __init__(self, board, tiles, orientation=IDENTITY):
        """
        Initialize the image view.

        Args:
            board: Solved Board
            tiles: Tile store the board's views refer to
            orientation: Orientation of the whole image

        Raises:
            ValueError: If the board is not solved
        """
        if not board.is_solved():
            raise ValueError("Cannot assemble an image from an unsolved board")

        self.board = board
        self.tiles = tiles
        self.orientation = orientation

        # Interior pixels contributed by each tile along one axis
        self.tile_size = board.view_at(0, 0).edge_length(tiles) + 1 - 2 * TILE_BORDER
        self.size = board.side * self.tile_size

    def reoriented(self, orientation):
        """The same image under another whole-image orientation."""
        return AssembledImage(self.board, self.tiles, orientation)

    def orientations(self):
        """
        Iterate the image under all eight orientations, in fixed order.

        Yields:
            AssembledImage
        """
        for orientation in ALL_ORIENTATIONS:
            yield self.reoriented(orientation)

    def pixel(self, x, y):
        """
        Read one pixel of the assembled image.

        Args:
            x, y: Global coordinate in [0, size)

        Returns:
            True if the pixel is set
        """
        x, y = self.orientation.remap(x, y, self.size)
        tile_x, offset_x = divmod(x, self.tile_size)
        tile_y, offset_y = divmod(y, self.tile_size)
        view = self.board.view_at(tile_x, tile_y)
        return view.pixel(self.tiles, offset_x + TILE_BORDER, offset_y + TILE_BORDER)

    def to_array(self):
        """
        Materialize the image.

        Returns:
            Boolean array indexed [y, x]
        """
        return np.array(
            [[self.pixel(x, y) for x in range(self.size)] for y in range(self.size)],
            dtype=bool,
        )

    def render(self):
        """
        Render the image as text.

        Returns:
            List of strings, one per row
        """
        return [
            "".join(SET_PIXEL if self.pixel(x, y) else UNSET_PIXEL for x in range(self.size))
            for y in range(self.size)
        ]
