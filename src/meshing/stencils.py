"""One-dimensional stencils for staggered Cartesian grids.

Every 3D operator is a Kronecker product of three of these 1D matrices.
Two kinds of source node sets appear along a direction:

- ``"F"``: the N+1 faces of the direction (a component living on faces);
  the first and last face are boundary nodes.
- ``"C"``: the N cell centres padded with the two walls,
  ``[x_0, x_c(0), ..., x_c(N-1), x_N]``; the walls are boundary nodes.

Target point sets are ``"c"`` (N centres), ``"f"`` (N+1 faces) and
``"fi"`` (N-1 interior faces).
"""

import numpy as np
from numba import njit
from scipy.sparse import coo_matrix, csr_matrix, diags

# Source kind codes used inside the jitted kernels
KIND_FACES = 0
KIND_CELLS = 1


@njit(cache=True)
def _linear_triplets(src, tgt, gradient):
    """Linear interpolation (or its derivative) from sorted ``src`` to sorted ``tgt``."""
    n_src = src.shape[0]
    n_tgt = tgt.shape[0]
    rows = np.empty(2 * n_tgt, dtype=np.int64)
    cols = np.empty(2 * n_tgt, dtype=np.int64)
    vals = np.empty(2 * n_tgt, dtype=np.float64)
    nnz = 0

    k = 0
    for i in range(n_tgt):
        p = tgt[i]
        while k < n_src - 2 and src[k + 1] <= p:
            k += 1
        h = src[k + 1] - src[k]

        if gradient:
            rows[nnz] = i
            cols[nnz] = k
            vals[nnz] = -1.0 / h
            nnz += 1
            rows[nnz] = i
            cols[nnz] = k + 1
            vals[nnz] = 1.0 / h
            nnz += 1
        else:
            w = (p - src[k]) / h
            if w != 1.0:
                rows[nnz] = i
                cols[nnz] = k
                vals[nnz] = 1.0 - w
                nnz += 1
            if w != 0.0:
                rows[nnz] = i
                cols[nnz] = k + 1
                vals[nnz] = w
                nnz += 1

    return rows[:nnz], cols[:nnz], vals[:nnz]


@njit(cache=True)
def _mirrored_node(kind, m, n):
    """Columns and weights of logical node ``m``, mirrored through the wall if outside.

    Returns (col0, w0, col1, w1); col1 = -1 when only one column is used.
    """
    if kind == KIND_FACES:
        if m < 0:
            return 0, 2.0, -m, -1.0
        if m > n:
            return n, 2.0, 2 * n - m, -1.0
        return m, 1.0, -1, 0.0
    # Cells padded with walls: cell m lives at ext index m + 1
    if m < 0:
        return 0, 2.0, -m, -1.0
    if m > n - 1:
        return n + 1, 2.0, 2 * n - m, -1.0
    return m + 1, 1.0, -1, 0.0


@njit(cache=True)
def _wide_triplets(kind, n, targets, off_left, off_right, gradient, h):
    """Three-cell-wide interpolation/derivative with mirrored ghost nodes."""
    n_tgt = targets.shape[0]
    rows = np.empty(4 * n_tgt, dtype=np.int64)
    cols = np.empty(4 * n_tgt, dtype=np.int64)
    vals = np.empty(4 * n_tgt, dtype=np.float64)
    nnz = 0

    if gradient:
        w_left = -1.0 / (3.0 * h)
        w_right = 1.0 / (3.0 * h)
    else:
        w_left = 0.5
        w_right = 0.5

    for i in range(n_tgt):
        t = targets[i]
        for side in range(2):
            if side == 0:
                m = t + off_left
                w = w_left
            else:
                m = t + off_right
                w = w_right
            c0, a0, c1, a1 = _mirrored_node(kind, m, n)
            rows[nnz] = i
            cols[nnz] = c0
            vals[nnz] = w * a0
            nnz += 1
            if c1 >= 0:
                rows[nnz] = i
                cols[nnz] = c1
                vals[nnz] = w * a1
                nnz += 1

    return rows[:nnz], cols[:nnz], vals[:nnz]


def _to_csr(rows, cols, vals, shape):
    return coo_matrix((vals, (rows, cols)), shape=shape).tocsr()


def linear_operator(src, tgt, gradient=False):
    """Interpolation (``gradient=False``) or derivative from ``src`` to ``tgt`` positions.

    Targets that coincide with a source node are copied exactly, so the same
    routine produces selections and identities.
    """
    src = np.ascontiguousarray(src, dtype=np.float64)
    tgt = np.ascontiguousarray(tgt, dtype=np.float64)
    rows, cols, vals = _linear_triplets(src, tgt, gradient)
    return _to_csr(rows, cols, vals, (tgt.shape[0], src.shape[0]))


def wide_operator(src_kind, tgt_kind, n, h, gradient=False):
    """Three-cell-wide counterpart of :func:`linear_operator` on a uniform axis.

    Only the pairs that actually average or differentiate between nodes
    (``F -> c``, ``C -> f``, ``C -> fi``) have a wide form.
    """
    if (src_kind, tgt_kind) == ("F", "c"):
        kind, targets, offsets, n_src = KIND_FACES, np.arange(n), (-1, 2), n + 1
    elif (src_kind, tgt_kind) == ("C", "f"):
        kind, targets, offsets, n_src = KIND_CELLS, np.arange(n + 1), (-2, 1), n + 2
    elif (src_kind, tgt_kind) == ("C", "fi"):
        kind, targets, offsets, n_src = KIND_CELLS, np.arange(1, n), (-2, 1), n + 2
    else:
        raise ValueError(f"No wide stencil from {src_kind!r} to {tgt_kind!r}")

    rows, cols, vals = _wide_triplets(
        kind, n, targets.astype(np.int64), offsets[0], offsets[1], gradient, h
    )
    return _to_csr(rows, cols, vals, (targets.shape[0], n_src))


def difference_operator(n_points, wide=False):
    """Flux difference from ``n_points`` flux points to the ``n_points - 1`` volumes between them.

    The wide form differences fluxes three volumes apart. Where that stencil
    leaves the domain it falls back to three times the narrow difference.
    """
    n_rows = n_points - 1
    if not wide:
        return csr_matrix(diags([-1.0, 1.0], [0, 1], shape=(n_rows, n_points)))

    rows, cols, vals = [], [], []
    for i in range(n_rows):
        if i - 1 >= 0 and i + 2 <= n_points - 1:
            rows += [i, i]
            cols += [i - 1, i + 2]
            vals += [-1.0, 1.0]
        else:
            rows += [i, i]
            cols += [i, i + 1]
            vals += [-3.0, 3.0]
    return _to_csr(np.array(rows), np.array(cols), np.array(vals), (n_rows, n_points))
