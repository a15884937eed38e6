# --- START OF FILE gauss_jordan.py ---

"""
Gauss-Jordan Elimination Module for Image Tampering Detection & Recovery System
Solves small dense linear systems given as augmented matrices [A | b]
"""

import numpy as np

from config import PIVOT_TOLERANCE
from errors import InvalidDimensions, SingularSystem


def _as_augmented(augmented):
    try:
        matrix = np.array(augmented, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidDimensions(f"Augmented matrix is not rectangular: {e}")

    if matrix.ndim != 2 or matrix.shape[0] == 0:
        raise InvalidDimensions(f"Augmented matrix must be a non-empty 2-D array, got shape {matrix.shape}")
    rows, cols = matrix.shape
    if cols != rows + 1:
        raise InvalidDimensions(f"Expected n x (n+1) augmented matrix, got {rows} x {cols}")
    if not np.all(np.isfinite(matrix)):
        raise InvalidDimensions("Augmented matrix contains non-finite values")
    return matrix


def solve_linear_system(augmented, tolerance=PIVOT_TOLERANCE):
    """
    Solve A x = b by full Gauss-Jordan reduction with partial pivoting.

    Args:
        augmented: n x (n+1) matrix whose last column is b
        tolerance: Smallest pivot magnitude accepted

    Returns:
        Solution vector of length n

    Raises:
        InvalidDimensions: Input is not n x (n+1)
        SingularSystem: A pivot column has no entry above tolerance
    """
    matrix = _as_augmented(augmented)
    n = matrix.shape[0]

    for col in range(n):
        # Partial pivoting: largest magnitude among the remaining rows
        pivot_row = col + int(np.argmax(np.abs(matrix[col:, col])))
        pivot_value = matrix[pivot_row, col]
        if abs(pivot_value) < tolerance:
            raise SingularSystem(col, pivot_value)

        if pivot_row != col:
            matrix[[col, pivot_row]] = matrix[[pivot_row, col]]

        matrix[col] = matrix[col] / pivot_value

        # Eliminate above and below the pivot
        factors = matrix[:, col].copy()
        factors[col] = 0.0
        matrix -= np.outer(factors, matrix[col])

    return matrix[:, n].copy()


def build_augmented_matrix(coefficients, rhs):
    """Stack an n x n coefficient matrix and a length-n right-hand side"""
    coefficients = np.asarray(coefficients, dtype=np.float64)
    rhs = np.asarray(rhs, dtype=np.float64)
    if coefficients.ndim != 2 or rhs.ndim != 1 or coefficients.shape[0] != rhs.shape[0]:
        raise InvalidDimensions(
            f"Cannot augment coefficients {coefficients.shape} with right-hand side {rhs.shape}"
        )
    return np.column_stack([coefficients, rhs])
