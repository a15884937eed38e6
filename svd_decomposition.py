# --- START OF FILE svd_decomposition.py ---

"""
SVD Module for Image Tampering Detection & Recovery System
Singular value decomposition of small patch matrices through a Jacobi eigen-solver
"""

import numpy as np
from collections import namedtuple

from config import SVD_TOLERANCE, SVD_MAX_SWEEPS, SVD_ZERO_RATIO
from errors import InvalidDimensions, ConvergenceFailure

SVDResult = namedtuple('SVDResult', ['U', 'S', 'V'])

# ======================= Helper Functions =======================

def _as_matrix(matrix):
    try:
        array = np.array(matrix, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidDimensions(f"Matrix is not rectangular: {e}")
    if array.ndim != 2 or array.size == 0:
        raise InvalidDimensions(f"Expected a non-empty 2-D matrix, got shape {array.shape}")
    if not np.all(np.isfinite(array)):
        raise InvalidDimensions("Matrix contains non-finite values")
    return array


def _off_diagonal_norm(a):
    off = a - np.diag(np.diag(a))
    return float(np.sqrt(np.sum(off ** 2)))


def jacobi_eigen(symmetric, tolerance=SVD_TOLERANCE, max_sweeps=SVD_MAX_SWEEPS):
    """
    Cyclic Jacobi eigenvalue method for a real symmetric matrix.

    Returns:
        (eigenvalues, eigenvectors) with eigenvectors as columns, unsorted
    """
    a = np.array(symmetric, dtype=np.float64)
    n = a.shape[0]
    vectors = np.eye(n)
    scale = float(np.linalg.norm(a))
    if scale == 0.0:
        return np.zeros(n), vectors

    for sweep in range(max_sweeps):
        if _off_diagonal_norm(a) <= tolerance * scale:
            return np.diag(a).copy(), vectors

        for p in range(n - 1):
            for q in range(p + 1, n):
                apq = a[p, q]
                if apq == 0.0:
                    continue
                diff = a[q, q] - a[p, p]
                if abs(apq) < 1e-150 * abs(diff):
                    # t = 1 / (2 theta) once theta^2 would overflow
                    t = apq / diff
                else:
                    theta = diff / (2.0 * apq)
                    t = (1.0 if theta >= 0 else -1.0) / (abs(theta) + np.sqrt(theta * theta + 1.0))
                c = 1.0 / np.sqrt(t * t + 1.0)
                s = t * c

                col_p = a[:, p].copy()
                col_q = a[:, q].copy()
                a[:, p] = c * col_p - s * col_q
                a[:, q] = s * col_p + c * col_q

                row_p = a[p, :].copy()
                row_q = a[q, :].copy()
                a[p, :] = c * row_p - s * row_q
                a[q, :] = s * row_p + c * row_q

                vec_p = vectors[:, p].copy()
                vec_q = vectors[:, q].copy()
                vectors[:, p] = c * vec_p - s * vec_q
                vectors[:, q] = s * vec_p + c * vec_q

    off_diagonal = _off_diagonal_norm(a)
    if off_diagonal <= tolerance * scale:
        return np.diag(a).copy(), vectors
    raise ConvergenceFailure(max_sweeps, off_diagonal)


def _orthonormal_columns(matrix, vectors, singular):
    """
    Derive the second factor as A v / sigma, kept orthonormal.
    Zero singular values get the first standard basis vectors not yet spanned.
    """
    n = matrix.shape[0]
    k = vectors.shape[1]
    basis = np.zeros((n, k))
    for i in range(k):
        previous = basis[:, :i]
        candidate = None
        if singular[i] > 0:
            candidate = matrix @ vectors[:, i] / singular[i]
            for _ in range(2):
                candidate = candidate - previous @ (previous.T @ candidate)
            norm = np.linalg.norm(candidate)
            candidate = candidate / norm if norm > 1e-8 else None

        if candidate is None:
            for j in range(n):
                e = np.zeros(n)
                e[j] = 1.0
                for _ in range(2):
                    e = e - previous @ (previous.T @ e)
                norm = np.linalg.norm(e)
                if norm > 1e-6:
                    candidate = e / norm
                    break
        basis[:, i] = candidate
    return basis


def _canonical_sign(vector):
    """+1 or -1 so that the largest-magnitude component (first on ties) is positive"""
    return -1.0 if vector[int(np.argmax(np.abs(vector)))] < 0 else 1.0


def _canonicalize_signs(u, s, v):
    u = u.copy()
    v = v.copy()
    for i in range(len(s)):
        if s[i] > 0:
            sign = _canonical_sign(v[:, i])
            u[:, i] *= sign
            v[:, i] *= sign
        else:
            u[:, i] *= _canonical_sign(u[:, i])
            v[:, i] *= _canonical_sign(v[:, i])
    return u, v

# ======================= Decomposition =======================

def decompose_svd(matrix, tolerance=SVD_TOLERANCE, max_sweeps=SVD_MAX_SWEEPS):
    """
    Decompose an n x m matrix A into U diag(S) V^T.

    Eigen-decomposes the smaller Gram matrix (A^T A or A A^T) with Jacobi
    rotations and derives the other factor from A.

    Returns:
        SVDResult with U (n x k), S (k, descending, non-negative), V (m x k),
        k = min(n, m)

    Raises:
        InvalidDimensions: Empty, ragged or non-finite input
        ConvergenceFailure: Jacobi iteration exceeded max_sweeps
    """
    a = _as_matrix(matrix)
    transposed = a.shape[0] < a.shape[1]
    if transposed:
        a = a.T

    eigenvalues, eigenvectors = jacobi_eigen(a.T @ a, tolerance, max_sweeps)
    order = np.argsort(-eigenvalues, kind='stable')
    right = eigenvectors[:, order]

    # ||A v|| keeps small singular values accurate where sqrt(eigenvalue) does not
    singular = np.linalg.norm(a @ right, axis=0)
    order = np.argsort(-singular, kind='stable')
    singular = singular[order]
    right = right[:, order]
    if singular.size and singular[0] > 0:
        singular[singular <= SVD_ZERO_RATIO * singular[0]] = 0.0
    else:
        singular[:] = 0.0

    left = _orthonormal_columns(a, right, singular)
    if transposed:
        left, right = right, left

    u, v = _canonicalize_signs(left, singular, right)
    return SVDResult(u, singular, v)


def reconstruct(result, rank=None):
    """U[:, :r] diag(S[:r]) V[:, :r]^T"""
    r = len(result.S) if rank is None else max(0, min(rank, len(result.S)))
    return (result.U[:, :r] * result.S[:r]) @ result.V[:, :r].T


def rank_for_energy(singular_values, energy):
    """Smallest rank whose squared singular values keep `energy` of the total"""
    squared = np.asarray(singular_values, dtype=np.float64) ** 2
    cumulative = np.cumsum(squared)
    if cumulative.size == 0 or cumulative[-1] == 0:
        return 0
    rank = int(np.searchsorted(cumulative, energy * cumulative[-1])) + 1
    return min(rank, len(squared))


def low_rank_approximation(matrix, rank=None, energy=None):
    """
    Rank-limited reconstruction of a matrix.

    Args:
        matrix: 2-D input
        rank: Number of singular triplets to keep
        energy: Alternatively, fraction of sum(S^2) to keep (0-1]

    Returns:
        Approximation with the input's shape
    """
    result = decompose_svd(matrix)
    if rank is None:
        rank = rank_for_energy(result.S, energy) if energy is not None else len(result.S)
    return reconstruct(result, rank)
