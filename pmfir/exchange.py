from dataclasses import dataclass
from typing import List, Tuple

import numpy as np

from pmfir.barycentric import NODE_TOL, BarycentricInterpolator, barycentric_eval_bound, barycentric_weights
from pmfir.exceptions import NumericalError, ResourceError
from pmfir.grid import Grid

EPS = np.finfo(np.float64).eps


def initial_indices(grid_size:int, r:int) -> np.ndarray:
    """r+1 grid indices evenly spaced over [0, grid_size-1]."""
    if grid_size < r + 1:
        raise NumericalError(f"Grid has {grid_size} points, at least r+1 = {r + 1} are needed")
    return (np.arange(r + 1) * (grid_size - 1)) // r


def alternating_signs(num:int) -> np.ndarray:
    """(+1, -1, +1, ...) of length num."""
    return np.where(np.arange(num) % 2 == 0, 1.0, -1.0)


def compute_rho(alpha, D_ext, W_ext) -> float:
    """
    Signed minimax error of the interpolant on the current extremal set.

    rho = sum(alpha_i * D_i) / sum((-1)^i * alpha_i / W_i)

    Raises NumericalError when the denominator cancels to rounding level.
    """
    sign = alternating_signs(len(alpha))
    t0 = np.sum(alpha * D_ext)
    terms = sign * alpha / W_ext
    t1 = np.sum(terms)
    if not np.isfinite(t1) or abs(t1) <= 64 * EPS * np.sum(np.abs(terms)):
        raise NumericalError(f"Degenerate rho denominator ({t1:.3e})")
    return float(t0 / t1)


@dataclass(eq=False)
class ExtremalSet:
    """Current extremal frequencies and the interpolant built on them.

    iext indexes the grid; x = cos(2*pi*F[iext]); alpha are the barycentric
    weights of x; c the interpolated node values; rho the signed deviation.
    """

    iext: np.ndarray
    x: np.ndarray
    alpha: np.ndarray
    c: np.ndarray
    rho: float

    @classmethod
    def from_indices(cls, grid:Grid, iext) -> "ExtremalSet":
        iext = np.asarray(iext, dtype=np.intp)
        x = np.cos(2 * np.pi * grid.F[iext])
        alpha = barycentric_weights(x)

        D_ext = grid.D[iext]
        W_ext = grid.W[iext]
        rho = compute_rho(alpha, D_ext, W_ext)

        # node values use the weight at the extremal node itself
        c = D_ext - alternating_signs(iext.shape[0]) * rho / W_ext
        return cls(iext=iext, x=x, alpha=alpha, c=c, rho=rho)

    def __len__(self):
        return self.iext.shape[0]

    @property
    def interpolator(self) -> BarycentricInterpolator:
        return BarycentricInterpolator(self.x, self.c, self.alpha)


def compute_error(grid:Grid, extremal:ExtremalSet, chunk_size:int=4096, node_tol:float=NODE_TOL) -> np.ndarray:
    """
    Weighted approximation error E = W * (D - H) over the whole grid.

    The result is written into grid.E (and returned), its rounding error
    bound into grid.E_tol. Grid points are evaluated in chunks so the
    temporary distance matrix stays bounded.
    """
    xf = np.cos(2 * np.pi * grid.F)
    try:
        for start in range(0, grid.grid_size, chunk_size):
            stop = min(start + chunk_size, grid.grid_size)
            H, H_tol = barycentric_eval_bound(extremal.x, extremal.c, extremal.alpha, xf[start:stop], node_tol)
            D, W = grid.D[start:stop], grid.W[start:stop]
            grid.E[start:stop] = W * (D - H)
            grid.E_tol[start:stop] = W * (H_tol + EPS * (np.abs(D) + np.abs(H)))
    except MemoryError as exc:
        raise ResourceError(f"Could not evaluate the error over {grid.grid_size} grid points") from exc

    if not np.all(np.isfinite(grid.E)):
        raise NumericalError("Error curve is not finite")
    return grid.E


def find_extrema(E) -> List[int]:
    """
    Candidate extremal indices of the error curve, in ascending order.

    Interior points qualify as strict positive maxima or strict negative
    minima. The two end points qualify when their magnitude exceeds that
    of their only neighbour.
    """
    E = np.asarray(E)
    grid_size = E.shape[0]
    if grid_size < 2:
        return [0] if grid_size == 1 and E[0] != 0 else []

    mid = E[1:-1]
    left = E[:-2]
    right = E[2:]
    interior = ((mid > 0) & (left < mid) & (right < mid)) | ((mid < 0) & (left > mid) & (right > mid))

    found = []
    if abs(E[0]) > abs(E[1]):
        found.append(0)
    found.extend(int(i) + 1 for i in np.flatnonzero(interior))
    if abs(E[-1]) > abs(E[-2]):
        found.append(grid_size - 1)
    return found


def _deletion_index(E, found:List[int], num_extra:int) -> int:
    """Position in found of the candidate to drop in one pruning pass."""
    sign = E[found[0]] > 0
    imin = 0
    for i in range(1, len(found)):
        e = E[found[i]]
        if abs(e) < abs(E[found[imin]]):
            imin = i

        if sign and e < 0:
            sign = False
        elif not sign and e > 0:
            sign = True
        else:
            # two neighbours with the same sign: drop the smaller one
            return i if abs(e) < abs(E[found[i-1]]) else i - 1

    if num_extra == 1:
        # alternation is intact: drop the smaller end point
        return 0 if abs(E[found[0]]) < abs(E[found[-1]]) else len(found) - 1
    return imin


def prune_extrema(E, found, num_keep:int) -> List[int]:
    """
    Remove candidates one at a time until num_keep remain.

    Each pass deletes the smaller member of the first same-sign pair. When
    the signs already alternate, one surplus candidate is resolved by
    dropping the smaller end point, and a larger surplus by dropping the
    smallest candidate overall.
    """
    E = np.asarray(E)
    found = list(found)
    while len(found) > num_keep:
        del found[_deletion_index(E, found, len(found) - num_keep)]
    return found


def count_changes(old, new) -> int:
    """Number of positions at which two index sequences differ."""
    return int(np.count_nonzero(np.asarray(old) != np.asarray(new)))


def flat_tolerance(grid:Grid, extremal:ExtremalSet) -> np.ndarray:
    """
    Per-point |E| below which the current interpolant is already optimal.

    The error can never drop below |rho| everywhere (it equals +-rho on the
    extremal set), so an error curve within rounding of |rho| at every grid
    point leaves nothing to exchange. Use after compute_error.
    """
    return abs(extremal.rho) + grid.E_tol


def remez_exchange(E, iext, r:int, flat_tol=0.0) -> Tuple[np.ndarray, int, List[int]]:
    """
    One Remez exchange step.

    Parameters:
    E (ndarray): Weighted error over the grid.
    iext (ndarray): Current r+1 extremal indices.
    r (int): Number of approximating functions.
    flat_tol (float or ndarray): Error curves with |E| <= flat_tol at every point keep iext unchanged.

    Returns:
    tuple:
        new_iext (ndarray): r+1 extremal indices with alternating error signs.
        num_changes (int): Positions where new_iext differs from iext.
        found (list): Candidate extrema before pruning.
    """
    E = np.asarray(E)
    iext = np.asarray(iext, dtype=np.intp)

    if np.all(np.abs(E) <= flat_tol):
        # equiripple to rounding, there is nothing to exchange
        return iext.copy(), 0, []

    found = find_extrema(E)
    if len(found) < r + 1:
        raise NumericalError(f"Found {len(found)} candidate extrema, at least r+1 = {r + 1} are needed")

    new_iext = np.asarray(prune_extrema(E, found, r + 1), dtype=np.intp)
    return new_iext, count_changes(iext, new_iext), found
