# --- START OF FILE tampering_detection.py ---

"""
Tampering Detection Module for Image Tampering Detection & Recovery System
Per-pixel difference thresholding, mask cleanup and tampering percentage
"""

import numpy as np
import cv2

from config import DIFFERENCE_THRESHOLD, DIFFERENCE_METRIC, MASK_CLEANUP, MIN_REGION_AREA
from pixel_grid import check_same_dimensions


def difference_map(original, tampered, metric=DIFFERENCE_METRIC):
    """
    Per-pixel absolute difference reduced across channels.

    Grids with different channel counts are compared on luminance.

    Returns:
        (H, W) float array
    """
    check_same_dimensions(original, tampered)
    if metric not in ('max', 'sum'):
        raise ValueError(f"Unknown difference metric: {metric}")

    if original.channels != tampered.channels:
        return np.abs(original.luminance() - tampered.luminance())

    diff = np.abs(original.samples - tampered.samples)
    if metric == 'max':
        return diff.max(axis=2)
    return diff.sum(axis=2)


def cleanup_mask(mask, min_region_area=MIN_REGION_AREA):
    """
    Remove 8-connected tampered regions smaller than min_region_area pixels.

    Each region is kept or dropped on its own area alone, so the result does
    not depend on scan order and re-applying it changes nothing.
    """
    mask = np.asarray(mask, dtype=bool)
    if min_region_area <= 1 or not mask.any():
        return mask.copy()

    mask_uint8 = np.ascontiguousarray(mask.astype(np.uint8))
    num_labels, labels, stats, _ = cv2.connectedComponentsWithStats(mask_uint8, connectivity=8)
    keep = stats[:, cv2.CC_STAT_AREA] >= min_region_area
    keep[0] = False  # background
    return keep[labels]


def generate_detection_mask(original, tampered, threshold=DIFFERENCE_THRESHOLD, metric=DIFFERENCE_METRIC,
                            cleanup=MASK_CLEANUP, min_region_area=MIN_REGION_AREA):
    """Binary (H, W) mask, True where a pixel is classified tampered"""
    if threshold < 0:
        raise ValueError(f"Threshold must be non-negative, got {threshold}")
    mask = difference_map(original, tampered, metric) > threshold
    if cleanup:
        mask = cleanup_mask(mask, min_region_area)
    return mask


def calculate_tampering_percentage(mask):
    """100 * tampered pixels / total pixels"""
    mask = np.asarray(mask, dtype=bool)
    if mask.size == 0:
        return 0.0
    return float(100.0 * np.count_nonzero(mask) / mask.size)


def detect_tampering(original, tampered, threshold=DIFFERENCE_THRESHOLD, metric=DIFFERENCE_METRIC,
                     cleanup=MASK_CLEANUP, min_region_area=MIN_REGION_AREA):
    """
    Compare two pixel grids of the same scene.

    Args:
        original: Reference PixelGrid
        tampered: Suspect PixelGrid, same width and height
        threshold: Difference above which a pixel is tampered (0-255 scale)
        metric: 'max' or 'sum' across channels
        cleanup: Drop regions smaller than min_region_area

    Returns:
        (tampering_percentage, detection_mask)

    Raises:
        DimensionMismatch: Grids differ in width or height
    """
    mask = generate_detection_mask(original, tampered, threshold, metric, cleanup, min_region_area)
    return calculate_tampering_percentage(mask), mask


def tampered_regions(mask):
    """
    Describe each 8-connected tampered region.

    Returns:
        List of dicts with bbox (x, y, w, h), area and centroid, largest first
    """
    mask = np.asarray(mask, dtype=bool)
    if not mask.any():
        return []

    mask_uint8 = np.ascontiguousarray(mask.astype(np.uint8))
    num_labels, labels, stats, centroids = cv2.connectedComponentsWithStats(mask_uint8, connectivity=8)
    regions = []
    for i in range(1, num_labels):
        x, y, w, h, area = stats[i]
        regions.append({
            'bbox': (int(x), int(y), int(w), int(h)),
            'area': int(area),
            'centroid': (float(centroids[i][0]), float(centroids[i][1])),
        })
    regions.sort(key=lambda r: r['area'], reverse=True)
    return regions
