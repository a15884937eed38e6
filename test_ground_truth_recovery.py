#!/usr/bin/env python3
"""
Test script for ground truth recovery
"""

import numpy as np
import pytest

import ground_truth_recovery
from errors import DimensionMismatch, SingularSystem
from pixel_grid import PixelGrid, to_pixel_grid
from tampering_detection import detect_tampering
from ground_truth_recovery import RecoveredGrid, recover_ground_truth, laplace_system, interpolate_patch


def _gradient_pair(height=16, width=16):
    y, x = np.mgrid[0:height, 0:width]
    base = (2 * x + 3 * y + 10).astype(np.uint8)
    original = np.stack([base, base // 2, 255 - base], axis=2)
    tampered = original.copy()
    tampered[4:10, 4:10] = (250, 0, 250)
    return to_pixel_grid(original), to_pixel_grid(tampered)


def _constant_pair(value=100, shape=(16, 16)):
    original = np.full(shape, value, dtype=np.uint8)
    return to_pixel_grid(original), original.copy()


@pytest.mark.parametrize("method", ["svd", "interpolation"])
def test_pixels_outside_mask_are_untouched(method):
    original, tampered = _gradient_pair()
    _, mask = detect_tampering(original, tampered)
    recovered = recover_ground_truth(original, tampered, mask=mask, method=method)

    assert isinstance(recovered, RecoveredGrid)
    assert isinstance(recovered, PixelGrid)
    assert recovered.shape == tampered.shape
    assert np.array_equal(recovered.samples[~mask], tampered.samples[~mask])


@pytest.mark.parametrize("method", ["svd", "interpolation"])
def test_grayscale_original_with_color_tampered(method):
    original = to_pixel_grid(np.full((16, 16), 100, dtype=np.uint8))
    tampered = np.full((16, 16, 3), 100, dtype=np.uint8)
    tampered[3:6, 3:6] = 250
    tampered = to_pixel_grid(tampered)

    recovered = recover_ground_truth(original, tampered, method=method)
    mask = recovered.mask

    assert recovered.channels == 3
    assert np.array_equal(mask[3:6, 3:6], np.ones((3, 3), dtype=bool))
    assert np.all(recovered.samples[mask] == 100)
    assert np.array_equal(recovered.samples[~mask], tampered.samples[~mask])


def test_singular_patch_falls_back_to_nearest_pixel(monkeypatch):
    def always_singular(augmented):
        raise SingularSystem(0)

    monkeypatch.setattr(ground_truth_recovery, 'solve_linear_system', always_singular)

    columns = np.tile(np.arange(16, dtype=np.uint8) * 10, (16, 1))
    tampered = columns.copy()
    tampered[4, 2:6] = 250
    original, tampered = to_pixel_grid(columns), to_pixel_grid(tampered)
    mask = np.zeros((16, 16), dtype=bool)
    mask[4, 2:6] = True

    recovered = recover_ground_truth(original, tampered, mask=mask, method='interpolation')

    assert np.array_equal(recovered.low_confidence, mask)
    # Nearest unmasked pixels sit directly above or below, in the same column
    assert recovered.samples[4, 2:6, 0].tolist() == [20.0, 30.0, 40.0, 50.0]
    assert np.array_equal(recovered.samples[~mask], tampered.samples[~mask])


def test_svd_recovery_restores_low_rank_original():
    original, tampered = _gradient_pair()
    recovered = recover_ground_truth(original, tampered, method='svd', energy=1.0)
    mask = recovered.mask

    assert mask.any()
    assert np.allclose(recovered.samples[mask], original.samples[mask], atol=0.5)
    assert not recovered.low_confidence.any()


def test_svd_recovery_beats_tampered_input():
    original, tampered = _gradient_pair()
    recovered = recover_ground_truth(original, tampered)
    mask = recovered.mask
    recovered_error = np.abs(recovered.samples[mask] - original.samples[mask]).mean()
    tampered_error = np.abs(tampered.samples[mask] - original.samples[mask]).mean()
    assert recovered_error < tampered_error / 10


def test_interpolation_fills_from_boundary():
    original, tampered = _constant_pair()
    tampered[3:6, 3:6] = 250
    tampered = to_pixel_grid(tampered)

    recovered = recover_ground_truth(original, tampered, method='interpolation')
    assert np.array_equal(recovered.mask[3:6, 3:6], np.ones((3, 3), dtype=bool))
    assert np.all(recovered.samples == 100)
    assert not recovered.low_confidence.any()


def test_fully_masked_patch_falls_back_with_low_confidence():
    original, tampered = _constant_pair()
    tampered[0:8, 0:8] = 250
    tampered = to_pixel_grid(tampered)

    recovered = recover_ground_truth(original, tampered, method='interpolation')
    expected = np.zeros((16, 16), dtype=bool)
    expected[0:8, 0:8] = True

    assert np.array_equal(recovered.low_confidence, expected)
    assert np.all(recovered.samples == 100)
    assert recovered.low_confidence_percentage == pytest.approx(25.0)


def test_whole_image_masked_uses_mean_fill():
    original = to_pixel_grid(np.full((8, 8, 3), (40, 80, 120), dtype=np.uint8))
    tampered = to_pixel_grid(np.full((8, 8, 3), 250, dtype=np.uint8))
    mask = np.ones((8, 8), dtype=bool)

    recovered = recover_ground_truth(original, tampered, mask=mask, method='interpolation')
    assert recovered.low_confidence.all()
    assert np.allclose(recovered.samples[0, 0], [40, 80, 120])


def test_mask_is_derived_when_missing():
    original, tampered = _gradient_pair()
    _, mask = detect_tampering(original, tampered)
    recovered = recover_ground_truth(original, tampered)
    assert np.array_equal(recovered.mask, mask)


@pytest.mark.parametrize("method", ["svd", "interpolation"])
def test_edge_patches_smaller_than_patch_size(method):
    original, tampered = _gradient_pair(height=13, width=11)
    tampered = tampered.samples.copy()
    tampered[9:13, 7:11] = 0
    tampered = to_pixel_grid(tampered)
    recovered = recover_ground_truth(original, tampered, method=method, patch_size=8)

    outside = ~recovered.mask
    assert np.array_equal(recovered.samples[outside], tampered.samples[outside])
    assert recovered.samples.min() >= 0 and recovered.samples.max() <= 255


def test_inputs_are_not_modified():
    original, tampered = _gradient_pair()
    before = tampered.samples.copy()
    recover_ground_truth(original, tampered, method='interpolation')
    assert np.array_equal(tampered.samples, before)


def test_invalid_arguments():
    original, tampered = _gradient_pair()
    with pytest.raises(DimensionMismatch):
        recover_ground_truth(original, tampered, mask=np.zeros((4, 4), dtype=bool))
    with pytest.raises(DimensionMismatch):
        recover_ground_truth(original, to_pixel_grid(np.zeros((16, 15))))
    with pytest.raises(ValueError):
        recover_ground_truth(original, tampered, method='inpaint')
    with pytest.raises(ValueError):
        recover_ground_truth(original, tampered, patch_size=0)


def test_laplace_system_for_single_unknown():
    patch_mask = np.zeros((3, 3), dtype=bool)
    patch_mask[1, 1] = True
    unknowns, coefficients, boundary = laplace_system(patch_mask)

    assert unknowns.tolist() == [[1, 1]]
    assert coefficients.tolist() == [[4.0]]
    assert sorted(np.flatnonzero(boundary[0]).tolist()) == [1, 3, 5, 7]


def test_interpolate_patch_averages_neighbours():
    patch = np.array([[0, 10, 0], [20, 255, 40], [0, 30, 0]], dtype=np.float64)[:, :, np.newaxis]
    patch_mask = np.zeros((3, 3), dtype=bool)
    patch_mask[1, 1] = True
    filled = interpolate_patch(patch, patch_mask)
    assert filled[1, 1, 0] == pytest.approx(25.0)
    assert filled[0, 1, 0] == 10.0


if __name__ == "__main__":
    raise SystemExit(pytest.main([__file__]))
