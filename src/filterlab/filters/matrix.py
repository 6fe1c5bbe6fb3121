"""Fixed-size dense matrix kernel for the 6-state / 2-measurement filters.

Thin wrappers over numpy with the exact semantics the filters rely on:
no shape checks (callers guarantee compatible dimensions) and no exceptions
on singular input. ``inverse2x2`` divides by the determinant directly, so a
zero or near-zero determinant produces inf/nan entries instead of raising.
"""

import numpy as np


def multiply(A: np.ndarray, B: np.ndarray) -> np.ndarray:
    return np.asarray(A, dtype=float) @ np.asarray(B, dtype=float)


def transpose(A: np.ndarray) -> np.ndarray:
    return np.asarray(A, dtype=float).T.copy()


def add(A: np.ndarray, B: np.ndarray) -> np.ndarray:
    return np.asarray(A, dtype=float) + np.asarray(B, dtype=float)


def subtract(A: np.ndarray, B: np.ndarray) -> np.ndarray:
    return np.asarray(A, dtype=float) - np.asarray(B, dtype=float)


def identity(n: int) -> np.ndarray:
    return np.eye(n)


def determinant2x2(A: np.ndarray) -> float:
    return float(A[0, 0] * A[1, 1] - A[0, 1] * A[1, 0])


def inverse2x2(A: np.ndarray) -> np.ndarray:
    """Closed-form inverse of a 2x2 matrix.

    det = a*d - b*c is used as-is. Singular input yields inf/nan rather
    than an error; downstream consumers floor the determinant themselves.
    """
    det = determinant2x2(A)
    with np.errstate(all="ignore"):
        det = np.float64(det)
        return np.array([
            [A[1, 1] / det, -A[0, 1] / det],
            [-A[1, 0] / det, A[0, 0] / det],
        ])


def extract_submatrix(A: np.ndarray, start_row: int, end_row: int,
                      start_col: int, end_col: int) -> np.ndarray:
    """Copy of A[start_row..end_row, start_col..end_col], bounds inclusive."""
    return np.array(A[start_row:end_row + 1, start_col:end_col + 1], dtype=float)


def outer(d: np.ndarray) -> np.ndarray:
    """Outer product d d^T of a flat vector."""
    d = np.asarray(d, dtype=float)
    return np.outer(d, d)
