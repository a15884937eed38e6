# --- START OF FILE ground_truth_recovery.py ---

"""
Ground Truth Recovery Module for Image Tampering Detection & Recovery System
Patch-wise reconstruction of tampered regions using Gauss-Jordan interpolation
or low-rank SVD approximation of the original patch
"""

import numpy as np
from scipy import ndimage

from config import PATCH_SIZE, RECOVERY_METHOD, SVD_ENERGY_RETAINED, MAX_SAMPLE_VALUE
from errors import DimensionMismatch, SingularSystem
from gauss_jordan import solve_linear_system, build_augmented_matrix
from pixel_grid import PixelGrid, check_same_dimensions
from svd_decomposition import low_rank_approximation
from tampering_detection import detect_tampering

RECOVERY_METHODS = ('svd', 'interpolation')
_NEIGHBORS_4 = [(-1, 0), (0, 1), (1, 0), (0, -1)]


class RecoveredGrid(PixelGrid):
    """
    PixelGrid equal to the tampered input outside `mask`.
    `low_confidence` marks pixels filled by the propagation/mean fallback.
    """

    def __init__(self, samples, mask, low_confidence):
        super().__init__(samples)
        self.mask = np.array(mask, dtype=bool)
        self.mask.flags.writeable = False
        self.low_confidence = np.array(low_confidence, dtype=bool)
        self.low_confidence.flags.writeable = False

    @property
    def low_confidence_percentage(self):
        return float(100.0 * np.count_nonzero(self.low_confidence) / self.low_confidence.size)

# ======================= Patch Reconstruction =======================

def laplace_system(patch_mask):
    """
    Discrete Laplace equations for the masked pixels of one patch.

    Each unknown equals the mean of its 4-neighbours inside the patch;
    unmasked neighbours act as boundary values.

    Returns:
        (unknowns, coefficients, boundary) where rhs = boundary @ patch.ravel()
    """
    h, w = patch_mask.shape
    unknowns = np.argwhere(patch_mask)
    index = -np.ones((h, w), dtype=np.int64)
    index[patch_mask] = np.arange(len(unknowns))

    n = len(unknowns)
    coefficients = np.zeros((n, n))
    boundary = np.zeros((n, h * w))
    for k, (y, x) in enumerate(unknowns):
        for dy, dx in _NEIGHBORS_4:
            ny, nx = y + dy, x + dx
            if not (0 <= ny < h and 0 <= nx < w):
                continue
            coefficients[k, k] += 1.0
            if patch_mask[ny, nx]:
                coefficients[k, index[ny, nx]] -= 1.0
            else:
                boundary[k, ny * w + nx] += 1.0
    return unknowns, coefficients, boundary


def interpolate_patch(patch, patch_mask):
    """
    Fill masked pixels of a (h, w, C) patch by boundary-value interpolation.

    Raises:
        SingularSystem: No known pixel reaches a masked region
    """
    unknowns, coefficients, boundary = laplace_system(patch_mask)
    filled = patch.copy()
    for c in range(patch.shape[2]):
        rhs = boundary @ patch[:, :, c].ravel()
        solution = solve_linear_system(build_augmented_matrix(coefficients, rhs))
        filled[unknowns[:, 0], unknowns[:, 1], c] = solution
    return filled


def svd_patch(patch, reference, patch_mask, energy=SVD_ENERGY_RETAINED):
    """Replace masked pixels with the low-rank approximation of the reference patch"""
    filled = patch.copy()
    for c in range(patch.shape[2]):
        approximation = low_rank_approximation(reference[:, :, c], energy=energy)
        filled[:, :, c][patch_mask] = approximation[patch_mask]
    return filled


def _reference_samples(original, channels):
    if original.channels == channels:
        return original.samples
    return np.repeat(original.luminance()[:, :, np.newaxis], channels, axis=2)


def _fallback_fill(samples, tampered, mask, pending, reference):
    """Nearest known pixel of the tampered image, or the reference mean when none is known"""
    if not pending.any():
        return
    if (~mask).any():
        iy, ix = ndimage.distance_transform_edt(mask, return_distances=False, return_indices=True)
        samples[pending] = tampered.samples[iy[pending], ix[pending]]
        print(f"  Warning: {np.count_nonzero(pending)} pixels filled by neighbour propagation (low confidence)")
    else:
        samples[pending] = reference.reshape(-1, reference.shape[2]).mean(axis=0)
        print("  Warning: entire image is masked, using mean fill (low confidence)")

# ======================= Recovery =======================

def recover_ground_truth(original, tampered, mask=None, method=RECOVERY_METHOD, patch_size=PATCH_SIZE,
                         energy=SVD_ENERGY_RETAINED):
    """
    Reconstruct pixel values inside the tampered region.

    Args:
        original: Reference PixelGrid
        tampered: Suspect PixelGrid, same width and height
        mask: Detection mask; derived with detect_tampering when None
        method: 'svd' (low-rank original patch) or 'interpolation' (Gauss-Jordan)
        patch_size: Side of the square patches, edge patches are truncated
        energy: Fraction of singular value energy kept by the 'svd' method

    Returns:
        RecoveredGrid, bit-identical to `tampered` outside the mask
    """
    check_same_dimensions(original, tampered)
    if method not in RECOVERY_METHODS:
        raise ValueError(f"Unknown recovery method: {method}")
    if patch_size < 1:
        raise ValueError(f"Patch size must be positive, got {patch_size}")

    if mask is None:
        _, mask = detect_tampering(original, tampered)
    mask = np.asarray(mask, dtype=bool)
    if mask.shape != (tampered.height, tampered.width):
        raise DimensionMismatch(
            f"Mask shape {mask.shape} does not match image {tampered.height} x {tampered.width}"
        )

    samples = tampered.samples.copy()
    reference = _reference_samples(original, tampered.channels)
    pending = np.zeros(mask.shape, dtype=bool)

    for top in range(0, tampered.height, patch_size):
        for left in range(0, tampered.width, patch_size):
            window = (slice(top, top + patch_size), slice(left, left + patch_size))
            patch_mask = mask[window]
            if not patch_mask.any():
                continue

            if method == 'svd':
                samples[window] = svd_patch(samples[window], reference[window], patch_mask, energy)
            elif patch_mask.all():
                pending[window] = True
            else:
                try:
                    samples[window] = interpolate_patch(samples[window], patch_mask)
                except SingularSystem as e:
                    print(f"  Warning: patch at ({left}, {top}) not solvable ({e}), using fallback")
                    pending[window] |= patch_mask

    _fallback_fill(samples, tampered, mask, pending, reference)

    samples[mask] = np.clip(np.rint(samples[mask]), 0.0, MAX_SAMPLE_VALUE)
    return RecoveredGrid(samples, mask, pending)
