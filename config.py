"""
Configuration file for Image Tampering Detection & Recovery System
"""

# Pixel grid parameters
SUPPORTED_CHANNELS = (1, 3, 4)
LUMA_WEIGHTS = (0.299, 0.587, 0.114)  # Y = 0.299R + 0.587G + 0.114B
MAX_SAMPLE_VALUE = 255.0

# LBP parameters
LBP_BINS = 256
# Clockwise from top-left, first neighbour is the most significant bit
LBP_NEIGHBOR_OFFSETS = [(-1, -1), (-1, 0), (-1, 1), (0, 1), (1, 1), (1, 0), (1, -1), (0, -1)]

# Gauss-Jordan parameters
PIVOT_TOLERANCE = 1e-10

# SVD parameters
SVD_TOLERANCE = 1e-12  # relative off-diagonal norm for Jacobi convergence
SVD_MAX_SWEEPS = 50
SVD_ZERO_RATIO = 1e-10  # sigma <= ratio * sigma_max is treated as zero

# Detection parameters
DIFFERENCE_THRESHOLD = 30  # on the 0-255 scale, strictly greater is tampered
DIFFERENCE_METRIC = 'max'  # 'max' or 'sum' across channels
MASK_CLEANUP = True
MIN_REGION_AREA = 2  # 8-connected regions smaller than this are dropped

# Recovery parameters
PATCH_SIZE = 8
RECOVERY_METHOD = 'svd'  # 'svd' or 'interpolation'
SVD_ENERGY_RETAINED = 0.99

# File format support
VALID_EXTENSIONS = ['.jpg', '.jpeg', '.png', '.bmp', '.tiff', '.tif', '.webp']
