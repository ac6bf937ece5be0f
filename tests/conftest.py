"""Pytest fixtures for tissuegraph tests."""

import tempfile

import numpy as np
import pytest

# raw value of a bond pixel with the default label values
BOND = 0x00FFFFFF


def make_grid_raster(rows, cols, size=3):
    """
    Raw raster of rows x cols square cells framed by one-pixel bonds.

    Cells are labeled 1.. in row-major order.
    """
    height = rows * (size + 1) + 1
    width = cols * (size + 1) + 1
    raw = np.full((height, width), BOND, dtype=np.int64)

    label = 1
    for r in range(rows):
        for c in range(cols):
            top = r * (size + 1) + 1
            left = c * (size + 1) + 1
            raw[top:top + size, left:left + size] = label
            label += 1

    return raw


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def default_config():
    """Create default configuration."""
    from tissuegraph.config import TissueConfig
    return TissueConfig()


@pytest.fixture
def single_cell_raw():
    """One 3x3 cell framed by bond pixels on a 5x5 canvas."""
    return make_grid_raster(1, 1)


@pytest.fixture
def two_cells_raw():
    """Two cells side by side sharing the bond column 4."""
    return make_grid_raster(1, 2)


@pytest.fixture
def adjacent_gap_raw():
    """Two cells whose shared bond has a hole at (2, 4)."""
    raw = make_grid_raster(1, 2)
    raw[2, 4] = 1
    return raw


@pytest.fixture
def t_junction_raw():
    """
    Top cell 1 over bottom cells 2 (left) and 3 (right).

    The bonds meet in a T at (3, 4).
    """
    raw = np.full((7, 9), BOND, dtype=np.int64)
    raw[1:3, 1:8] = 1
    raw[4:6, 1:4] = 2
    raw[4:6, 5:8] = 3
    return raw


@pytest.fixture
def thick_vertex_raw():
    """
    Four cells meeting in a 2x2 bond block at rows 4-5, cols 4-5.

    Cell 1 top-left, 2 top-right, 3 bottom-left, 4 bottom-right.
    """
    raw = np.full((10, 10), BOND, dtype=np.int64)
    raw[1:4, 1:4] = 1
    raw[1:5, 5:9] = 2
    raw[5:9, 1:5] = 3
    raw[6:9, 6:9] = 4
    raw[4, 5] = BOND
    raw[5, 4] = BOND
    return raw


@pytest.fixture
def island_raw():
    """Cell 1 enclosed by a bond ring inside cell 2, which touches the border."""
    raw = np.full((5, 7), 2, dtype=np.int64)
    raw[1:4, 1:6] = BOND
    raw[2, 2:5] = 1
    return raw


@pytest.fixture
def margin_block_raw():
    """
    Two cells meeting the top frame in a 2x2 bond block.

        ##########
        #222##111#
        #2222#111#
        #2222#111#
        #2222#111#
        ##########

    The block spans rows 0-1, columns 4-5, so half of it lies on the margin.
    """
    raw = np.full((6, 10), BOND, dtype=np.int64)
    raw[1, 1:4] = 2
    raw[2:5, 1:5] = 2
    raw[1:5, 6:9] = 1
    return raw
