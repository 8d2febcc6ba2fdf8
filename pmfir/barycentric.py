import numpy as np

from pmfir.exceptions import NumericalError

NODE_TOL = 1e-14
EPS = np.finfo(np.float64).eps


def barycentric_weights(x) -> np.ndarray:
    """
    Barycentric Lagrange weights for the abscissas x.

    alpha_i = 1 / prod_{j != i} 2*(x_i - x_j). The factor 2 keeps the
    products of order one for nodes in [-1, 1]; a common scale of the
    weights cancels in the barycentric quotient.

    Parameters:
    x (array_like): Distinct interpolation abscissas.

    Returns:
    ndarray: Weights alpha, same length as x.
    """
    x = np.asarray(x, dtype=np.float64)
    diff = 2.0 * (x[:, None] - x[None, :])
    np.fill_diagonal(diff, 1.0)
    if np.any(diff == 0.0):
        i, j = np.argwhere(diff == 0.0)[0]
        raise NumericalError(f"Duplicate interpolation abscissas x[{i}] = x[{j}] = {x[i]:.17g}")
    return 1.0 / np.prod(diff, axis=1)


def _second_form(x, c, alpha, xf, node_tol, with_bound):
    x = np.asarray(x, dtype=np.float64)
    c = np.asarray(c, dtype=np.float64)
    alpha = np.asarray(alpha, dtype=np.float64)
    xf_arr = np.asarray(xf, dtype=np.float64)
    xf_flat = np.atleast_1d(xf_arr).ravel()

    dx = xf_flat[:, None] - x[None, :]
    hit = np.abs(dx) <= node_tol
    on_node = np.any(hit, axis=1)

    with np.errstate(divide="ignore", invalid="ignore"):
        t = alpha[None, :] / dx
        den = np.sum(t, axis=1)
        out = (t @ c) / den
        if with_bound:
            # first-order rounding bound of the quotient: sums of x.shape[0] terms,
            # perturbed weights and the final division
            abs_t = np.abs(t)
            bound = 8 * x.shape[0] * EPS * (abs_t @ np.abs(c) + np.abs(out) * np.sum(abs_t, axis=1)) / np.abs(den)

    if np.any(on_node):
        node_values = c[np.argmax(hit[on_node], axis=1)]
        out[on_node] = node_values
        if with_bound:
            bound[on_node] = EPS * np.abs(node_values)

    if with_bound:
        return out.reshape(xf_arr.shape), bound.reshape(xf_arr.shape)
    return out.reshape(xf_arr.shape)


def barycentric_eval(x, c, alpha, xf, node_tol:float=NODE_TOL):
    """
    Evaluate the barycentric interpolant through (x_i, c_i) at xf.

    Points within node_tol of a node return that node's value unchanged.

    Parameters:
    x (ndarray): Interpolation abscissas.
    c (ndarray): Values at the abscissas.
    alpha (ndarray): Barycentric weights of x.
    xf (float or array_like): Evaluation points.
    node_tol (float): Distance below which xf is treated as the node itself.

    Returns:
    float or ndarray: Interpolant at xf, shaped like xf.
    """
    out = _second_form(x, c, alpha, xf, node_tol, with_bound=False)
    if out.ndim == 0:
        return float(out)
    return out


def barycentric_eval_bound(x, c, alpha, xf, node_tol:float=NODE_TOL):
    """
    Evaluate the interpolant together with a bound on its rounding error.

    The bound grows with the cancellation in the barycentric sums, so it
    tracks how far the computed value can sit from the exact interpolant
    for badly distributed nodes.

    Returns:
    tuple:
        H (ndarray): Interpolant at xf.
        bound (ndarray): Rounding error bound of H, same shape.
    """
    return _second_form(x, c, alpha, xf, node_tol, with_bound=True)


class BarycentricInterpolator:
    """Degree-r interpolant through r+1 points in barycentric form.

    Parameters:
    -----------
    x (array_like) - distinct abscissas
    c (array_like) - values at the abscissas
    alpha (array_like) - barycentric weights; computed from x if 'None'
    node_tol (float) - distance below which an evaluation point snaps to a node
    """

    def __init__(self, x, c, alpha=None, node_tol:float=NODE_TOL):
        self.x = np.asarray(x, dtype=np.float64)
        self.c = np.asarray(c, dtype=np.float64)
        if self.x.shape != self.c.shape:
            raise ValueError(f"x and c must have the same shape, got {self.x.shape} and {self.c.shape}.")
        self.alpha = barycentric_weights(self.x) if alpha is None else np.asarray(alpha, dtype=np.float64)
        self.node_tol = node_tol

    def __len__(self):
        return self.x.shape[0]

    def __call__(self, xf):
        return barycentric_eval(self.x, self.c, self.alpha, xf, self.node_tol)

    def at_frequency(self, f):
        """Evaluate at the Chebyshev abscissa cos(2*pi*f) of the frequency f."""
        return self(np.cos(2 * np.pi * np.asarray(f, dtype=np.float64)))
