from dataclasses import dataclass

import numpy as np

from pmfir.bands import FilterSpec
from pmfir.exceptions import ResourceError, ValidationError

DEFAULT_GRID_DENSITY = 16


@dataclass(eq=False)
class Grid:
    """Dense frequency grid over the disjoint band set.

    F, D, W and band are fixed once built; E holds the signed weighted
    error of the current interpolant and is overwritten every iteration,
    E_tol the rounding error bound of each E value.
    """

    F: np.ndarray
    D: np.ndarray
    W: np.ndarray
    E: np.ndarray
    band: np.ndarray
    df: float
    grid_density: int
    E_tol: np.ndarray = None

    def __post_init__(self):
        if self.E_tol is None:
            self.E_tol = np.zeros_like(self.F)

    @property
    def grid_size(self) -> int:
        return self.F.shape[0]

    def band_slice(self, k:int) -> slice:
        """Index range of the grid points attributed to band k."""
        idx = np.flatnonzero(self.band == k)
        return slice(int(idx[0]), int(idx[-1]) + 1)


def grid_spacing(r:int, grid_density:int=DEFAULT_GRID_DENSITY) -> float:
    return 0.5 / (grid_density * r)


def band_points(f0:float, f1:float, df:float) -> np.ndarray:
    """
    Grid frequencies for a single band [f0, f1].

    Parameters:
    f0 (float): Lower band edge.
    f1 (float): Upper band edge.
    df (float): Grid spacing.

    Returns:
    ndarray: f0 + j*df for j = 0..count-1 with count = max(1, round((f1-f0)/df)),
             the last point replaced by f1.
    """
    # round half up, not numpy's round half to even
    num_points = max(1, int(np.floor((f1 - f0) / df + 0.5)))
    f = f0 + np.arange(num_points) * df
    # force endpoint to be the upper band edge
    f[-1] = f1
    return f


def build_grid(spec:FilterSpec, grid_density:int=DEFAULT_GRID_DENSITY, verbose:bool=False) -> Grid:
    """
    Build the dense frequency grid for the Remez exchange.

    Parameters:
    spec (FilterSpec): Validated band description.
    grid_density (int): Oversampling factor relative to the r approximating functions.
    verbose (bool): Print the spacing and the number of points per band.

    Returns:
    Grid: Frequencies with per-point desired response, weight and band index.
    """
    if isinstance(grid_density, bool) or not isinstance(grid_density, (int, np.integer)) or grid_density < 1:
        raise ValidationError(f"grid_density must be a positive integer, got {grid_density!r}.")

    df = grid_spacing(spec.r, grid_density)
    if verbose:
        print(f"df : {df:12.8f}")

    try:
        freqs = []
        for f0, f1 in spec.bands:
            f = band_points(f0, f1, df)
            if verbose:
                print(f"band : [{f0:12.8f} {f1:12.8f}] {f.shape[0]:3d} points")
            freqs.append(f)

        counts = [f.shape[0] for f in freqs]
        F = np.concatenate(freqs)
        D = np.repeat(np.asarray(spec.des, dtype=np.float64), counts)
        W = np.repeat(np.asarray(spec.weights, dtype=np.float64), counts)
        band = np.repeat(np.arange(spec.num_bands), counts)
        E = np.zeros_like(F)
        E_tol = np.zeros_like(F)
    except MemoryError as exc:
        raise ResourceError(f"Could not allocate the frequency grid for {spec.num_bands} bands at df={df:g}.") from exc

    # TODO: special symmetry handling for 'differentiator'/'hilbert' band types (1/f weighting, sin factors)
    return Grid(F=F, D=D, W=W, E=E, band=band, df=df, grid_density=int(grid_density), E_tol=E_tol)
