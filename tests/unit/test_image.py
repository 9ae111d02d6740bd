"""
Unit tests for image assembly.
"""

import numpy as np
import pytest

from reassembly.board import Board
from reassembly.image import AssembledImage
from reassembly.monster import count_set_pixels
from reassembly.orientation import ALL_ORIENTATIONS


@pytest.fixture
def solved(unique_puzzle):
    tiles = unique_puzzle.tiles
    return Board.from_tiles(tiles).solve(tiles)


class TestAssembledImage:
    """Test AssembledImage pixel access."""

    def test_size_excludes_borders(self, unique_puzzle, solved):
        """Test 3 tiles of 10 pixels give 3 x 8 pixels per axis."""
        image = AssembledImage(solved, unique_puzzle.tiles)

        assert image.tile_size == 8
        assert image.size == 24

    def test_image_is_interior_up_to_symmetry(self, unique_puzzle, solved):
        """Test that some orientation of the image is the original interior."""
        image = AssembledImage(solved, unique_puzzle.tiles)

        matches = [
            o for o in ALL_ORIENTATIONS
            if np.array_equal(image.reoriented(o).to_array(), unique_puzzle.interior)
        ]
        assert len(matches) >= 1

    def test_pixel_reads_tile_interior(self, unique_puzzle, solved):
        """Test that pixel (0, 0) is pixel (1, 1) of the top-left tile."""
        tiles = unique_puzzle.tiles
        image = AssembledImage(solved, tiles)

        view = solved.view_at(0, 0)
        assert image.pixel(0, 0) == view.pixel(tiles, 1, 1)
        assert image.pixel(7, 7) == view.pixel(tiles, 8, 8)
        assert image.pixel(8, 0) == solved.view_at(1, 0).pixel(tiles, 1, 1)

    def test_reoriented_matches_numpy(self, unique_puzzle, solved):
        """Test whole-image orientation against numpy on the bitmap."""
        image = AssembledImage(solved, unique_puzzle.tiles)
        base = image.to_array()

        assert np.array_equal(image.reoriented(ALL_ORIENTATIONS[0]).to_array(), np.fliplr(base))
        assert np.array_equal(image.reoriented(ALL_ORIENTATIONS[5]).to_array(), np.rot90(base, k=-1))

    def test_orientations_yields_eight(self, unique_puzzle, solved):
        """Test that orientations() iterates all eight in order."""
        image = AssembledImage(solved, unique_puzzle.tiles)

        assert [i.orientation for i in image.orientations()] == list(ALL_ORIENTATIONS)

    def test_render(self, unique_puzzle, solved):
        """Test the text rendering."""
        image = AssembledImage(solved, unique_puzzle.tiles)
        lines = image.render()
        bitmap = image.to_array()

        assert len(lines) == 24
        assert all(len(line) == 24 for line in lines)
        assert lines[3][5] == ('#' if bitmap[3, 5] else '.')
        assert sum(line.count('#') for line in lines) == int(bitmap.sum())

    def test_set_pixels_invariant_under_orientation(self, unique_puzzle, solved):
        """Test that every orientation has the same number of set pixels."""
        image = AssembledImage(solved, unique_puzzle.tiles)
        expected = int(unique_puzzle.interior.sum())

        for oriented in image.orientations():
            assert count_set_pixels(oriented) == expected

    def test_unsolved_board_rejected(self, unique_puzzle):
        """Test that an unsolved board cannot be assembled."""
        with pytest.raises(ValueError):
            AssembledImage(Board.from_tiles(unique_puzzle.tiles), unique_puzzle.tiles)
