"""Tests for synth.py - synthetic volume generators."""

import numpy as np
import pytest

from lesvox.decoder import decode_les
from lesvox.encoder import encode_les_bytes
from lesvox.layout import Dimensions
from lesvox.synth import (
    PATTERNS, random_spheres, spatial_regions, gradient, checkerboard, make_dataset,
)
from lesvox.validation import BadDimensionError


class TestRandomSpheres:
    """Test sphere placement."""

    def test_shape_and_dtype(self):
        volume = random_spheres(Dimensions(32, 24, 16), num_spheres=5, min_radius=2, max_radius=6)
        assert volume.shape == (32, 24, 16)
        assert volume.dtype == np.uint8
        assert volume.any()

    def test_seed_is_reproducible(self):
        dims = Dimensions(20, 20, 20)
        a = random_spheres(dims, num_spheres=4, min_radius=2, max_radius=5, seed=1)
        b = random_spheres(dims, num_spheres=4, min_radius=2, max_radius=5, seed=1)
        c = random_spheres(dims, num_spheres=4, min_radius=2, max_radius=5, seed=2)

        np.testing.assert_array_equal(a, b)
        assert not np.array_equal(a, c)

    def test_small_grid(self):
        """Radii larger than the grid still produce a valid volume."""
        volume = random_spheres(Dimensions(3, 3, 3), num_spheres=2, min_radius=5, max_radius=10)
        assert volume.shape == (3, 3, 3)
        assert volume.all()

    def test_bad_radii(self):
        with pytest.raises(ValueError):
            random_spheres(Dimensions(8, 8, 8), min_radius=5, max_radius=2)


class TestRegions:
    """Test spatial block partitioning."""

    def test_block_ids(self):
        volume = spatial_regions(Dimensions(4, 4, 4), num_regions=2)

        assert volume[0, 0, 0] == 1
        assert volume[0, 0, 3] == 2
        assert volume[0, 3, 0] == 3
        assert volume[3, 0, 0] == 5
        assert volume[3, 3, 3] == 8
        assert set(np.unique(volume).tolist()) == set(range(1, 9))

    def test_ids_cycle_through_16(self):
        volume = spatial_regions(Dimensions(12, 12, 12), num_regions=3)
        assert volume.min() == 1
        assert volume.max() == 16


class TestGradient:
    """Test linear ramps."""

    def test_z_ramp(self):
        volume = gradient(Dimensions(2, 2, 5), axis=2)
        assert volume[0, 0].tolist() == [1, 63, 127, 191, 255]
        assert volume[1, 1].tolist() == [1, 63, 127, 191, 255]

    def test_x_ramp(self):
        volume = gradient(Dimensions(3, 2, 2), axis=0)
        assert volume[:, 0, 0].tolist() == [1, 127, 255]

    def test_single_voxel_axis(self):
        volume = gradient(Dimensions(2, 1, 2), axis=1)
        assert (volume == 1).all()

    def test_bad_axis(self):
        with pytest.raises(ValueError):
            gradient(Dimensions(2, 2, 2), axis=3)


class TestCheckerboard:
    def test_pattern(self):
        volume = checkerboard(Dimensions(4, 4, 4), block_size=2)
        assert volume[0, 0, 0] == 10
        assert volume[2, 0, 0] == 5
        assert volume[2, 2, 0] == 10
        assert volume[3, 3, 3] == 5

    def test_custom_values(self):
        volume = checkerboard(Dimensions(2, 1, 1), block_size=1, values=(200, 0))
        assert volume[:, 0, 0].tolist() == [200, 0]


class TestMakeDataset:
    """Test wrapping patterns as datasets."""

    @pytest.mark.parametrize("pattern", sorted(PATTERNS))
    def test_patterns_roundtrip(self, pattern):
        ds = make_dataset(pattern, Dimensions(8, 6, 5), voxel_pitch=5e-8)

        decoded = decode_les(encode_les_bytes(ds), "synthetic.leS")

        assert decoded.dimensions == Dimensions(8, 6, 5)
        np.testing.assert_array_equal(decoded.values, ds.values)

    def test_kwargs_forwarded(self):
        ds = make_dataset("checkerboard", Dimensions(4, 4, 4), block_size=4)
        assert set(np.unique(ds.values).tolist()) == {10}

    def test_unknown_pattern(self):
        with pytest.raises(ValueError, match="Unknown pattern"):
            make_dataset("noise", Dimensions(4, 4, 4))

    def test_bad_dimensions(self):
        with pytest.raises(BadDimensionError):
            make_dataset("gradient", Dimensions(4, 4, 2000))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
