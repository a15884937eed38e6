# --- START OF FILE lbp_analysis.py ---

"""
LBP Analysis Module for Image Tampering Detection & Recovery System
Contains the 8-neighbour Local Binary Pattern histogram and histogram comparison helpers
"""

import numpy as np

from config import LBP_BINS, LBP_NEIGHBOR_OFFSETS

# ======================= LBP Extraction =======================

def lbp_code_map(grid):
    """
    Compute the LBP code of every interior pixel.

    The 1-pixel border is skipped, so the map has shape (H-2, W-2).
    Bit 7 belongs to the top-left neighbour, then clockwise down to bit 0 (left).
    """
    gray = grid.luminance()
    h, w = gray.shape
    if h < 3 or w < 3:
        return np.zeros((max(0, h - 2), max(0, w - 2)), dtype=np.int64)

    center = gray[1:h-1, 1:w-1]
    codes = np.zeros(center.shape, dtype=np.int64)
    n_bits = len(LBP_NEIGHBOR_OFFSETS)
    for k, (dy, dx) in enumerate(LBP_NEIGHBOR_OFFSETS):
        neighbor = gray[1+dy:h-1+dy, 1+dx:w-1+dx]
        codes |= (neighbor >= center).astype(np.int64) << (n_bits - 1 - k)
    return codes


def compute_lbp(grid):
    """
    LBP texture histogram of a pixel grid.

    Args:
        grid: PixelGrid (color grids are reduced to luminance)

    Returns:
        int64 array of 256 raw counts, summing to (W-2)*(H-2)
    """
    codes = lbp_code_map(grid)
    return np.bincount(codes.ravel(), minlength=LBP_BINS).astype(np.int64)

# ======================= Histogram Comparison =======================

def normalize_histogram(histogram):
    """L1-normalize a histogram. An empty histogram stays all-zero."""
    histogram = np.asarray(histogram, dtype=np.float64)
    total = histogram.sum()
    if total == 0:
        return np.zeros_like(histogram)
    return histogram / total


def chi_square_distance(hist_a, hist_b):
    """Symmetric chi-square distance between the normalized histograms, in [0, 1]"""
    p = normalize_histogram(hist_a)
    q = normalize_histogram(hist_b)
    denom = p + q
    nonzero = denom > 0
    return float(0.5 * np.sum((p[nonzero] - q[nonzero]) ** 2 / denom[nonzero]))


def histogram_intersection(hist_a, hist_b):
    """Overlap of the normalized histograms, 1.0 for identical distributions"""
    p = normalize_histogram(hist_a)
    q = normalize_histogram(hist_b)
    return float(np.minimum(p, q).sum())


def compare_lbp_histograms(original, tampered):
    """Compute both LBP histograms and how far apart their textures are"""
    original_hist = compute_lbp(original)
    tampered_hist = compute_lbp(tampered)
    return {
        'original_histogram': original_hist,
        'tampered_histogram': tampered_hist,
        'chi_square': chi_square_distance(original_hist, tampered_hist),
        'intersection': histogram_intersection(original_hist, tampered_hist),
    }
