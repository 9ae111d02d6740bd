"""
Sea Monster Scanner Module

This module searches an assembled image for the sea monster pattern and
computes the roughness of the water: the set pixels not explained by the
monsters found.
"""

import numpy as np
import torch
import torch.nn.functional as F

from data.puzzle_definition import (
    MONSTER_OFFSETS, MONSTER_WIDTH, MONSTER_HEIGHT, MONSTER_CELLS
)


class PatternNotFoundError(LookupError):
    """Raised when no orientation of the image contains the pattern."""


def matches_at(image, x, y):
    """
    Check whether the monster is anchored at (x, y).

    Args:
        image: Object with a pixel(x, y) method
        x: Anchor column, in [0, size - MONSTER_WIDTH]
        y: Anchor row, in [0, size - MONSTER_HEIGHT]

    Returns:
        True if every monster cell is set in the image
    """
    return all(image.pixel(x + dx, y + dy) for dx, dy in MONSTER_OFFSETS)


def find_matches(image):
    """
    Find every monster anchor, row-major.

    Args:
        image: Object with size and pixel(x, y)

    Returns:
        List of (x, y) anchors
    """
    anchors = []
    for y in range(image.size - MONSTER_HEIGHT + 1):
        for x in range(image.size - MONSTER_WIDTH + 1):
            if matches_at(image, x, y):
                anchors.append((x, y))
    return anchors


def count_matches(image):
    return len(find_matches(image))


def count_set_pixels(image):
    """Total number of set pixels in the image."""
    return sum(
        1
        for y in range(image.size)
        for x in range(image.size)
        if image.pixel(x, y)
    )


def roughness(image, total_set, match_count=None):
    """
    Set pixels of an image not covered by monsters.

    Args:
        image: Image orientation that contains the monsters
        total_set: Total set pixels of the image
        match_count: Monster count if already known

    Returns:
        total_set minus the pixels of every monster found
    """
    if match_count is None:
        match_count = count_matches(image)
    return total_set - MONSTER_CELLS * match_count


def monster_kernel():
    """
    Get the monster as a convolution kernel.

    Returns:
        Float tensor of shape [1, 1, MONSTER_HEIGHT, MONSTER_WIDTH]
    """
    kernel = torch.zeros((1, 1, MONSTER_HEIGHT, MONSTER_WIDTH), dtype=torch.float32)
    for dx, dy in MONSTER_OFFSETS:
        kernel[0, 0, dy, dx] = 1.0
    return kernel


def count_matches_conv(bitmap, device=None):
    """
    Count monster anchors with a 2-D convolution.

    An anchor matches when the kernel response reaches the number of
    monster cells.

    Args:
        bitmap: Boolean array indexed [y, x]
        device: Torch device to run on (None=CPU)

    Returns:
        Number of anchors
    """
    bitmap = np.asarray(bitmap, dtype=np.float32)
    if bitmap.shape[0] < MONSTER_HEIGHT or bitmap.shape[1] < MONSTER_WIDTH:
        return 0

    image = torch.from_numpy(bitmap)[None, None].to(device or "cpu")
    response = F.conv2d(image, monster_kernel().to(image.device))
    return int((response >= MONSTER_CELLS - 0.5).sum().item())


def monster_mask(image, anchors):
    """
    Mark the pixels covered by monsters.

    Args:
        image: Object with size
        anchors: List of (x, y) anchors

    Returns:
        Boolean array indexed [y, x]
    """
    mask = np.zeros((image.size, image.size), dtype=bool)
    for x, y in anchors:
        for dx, dy in MONSTER_OFFSETS:
            mask[y + dy, x + dx] = True
    return mask


def find_roughness(image, use_conv=False, device=None):
    """
    Compute the roughness at the first orientation that shows monsters.

    Args:
        image: AssembledImage in any orientation
        use_conv: Count matches with the convolution scan
        device: Torch device for the convolution scan

    Returns:
        (orientation, match_count, roughness)

    Raises:
        PatternNotFoundError: If no orientation contains a monster
    """
    # Flips and rotations only permute pixels, so any orientation will do
    total_set = count_set_pixels(image)

    for oriented in image.orientations():
        if use_conv:
            match_count = count_matches_conv(oriented.to_array(), device)
        else:
            match_count = count_matches(oriented)

        if match_count > 0:
            return oriented.orientation, match_count, roughness(oriented, total_set, match_count)

    raise PatternNotFoundError("No sea monster found in any orientation of the image")
