import numpy as np
import matplotlib.pyplot as plt

from pmfir.designer import DesignResult


def response(result:DesignResult, num_points:int=1024):
    """Designed amplitude response on an even frequency axis.

    Args:
        result (DesignResult): Finished design.
        num_points (int): Number of frequencies in [0, 0.5].

    Returns:
        f (numpy.Array): Frequencies in cycles/sample.
        H (numpy.Array): Amplitude response at f.
    """
    f = np.linspace(0, 0.5, num_points)
    return f, result.response(f)


def band_error(result:DesignResult):
    """Largest weighted error magnitude per band on the design grid."""
    grid = result.grid
    return np.array([np.max(np.abs(grid.E[grid.band_slice(k)])) for k in range(result.spec.num_bands)])


def plot_error(result:DesignResult, show:bool=True):
    """Weighted error curve over the grid with the extremal frequencies marked.

    Args:
        result (DesignResult): Finished design.
        show (bool): Call plt.show() at the end.

    Returns:
        fig (matplotlib.figure.Figure): The figure.
    """
    grid = result.grid
    fig, ax = plt.subplots(1, 1, figsize=(10, 4))

    # plot band by band so the gaps between bands stay empty
    for k in range(result.spec.num_bands):
        sl = grid.band_slice(k)
        ax.plot(grid.F[sl], grid.E[sl], color='black', linewidth=1)
    if result.extremal is not None:
        ax.scatter(result.extremal_frequencies, grid.E[result.iext], color='orange', zorder=3, label="Extremal frequencies")
        ax.axhline(abs(result.rho), color='gray', linestyle='--', alpha=0.5)
        ax.axhline(-abs(result.rho), color='gray', linestyle='--', alpha=0.5)

    ax.set_title(f'Weighted error ({result.status.value}, {result.iterations} iterations)')
    ax.set_xlabel('Frequency [cycles/sample]')
    ax.set_ylabel('W(f) (D(f) - H(f))')
    ax.set_xlim(0, 0.5)
    if result.extremal is not None:
        ax.legend()

    if show:
        plt.show()
    return fig


def plot_response(result:DesignResult, num_points:int=1024, db:bool=False, show:bool=True):
    """Designed amplitude response with the band specification overlaid.

    Args:
        result (DesignResult): Finished design.
        num_points (int): Number of frequencies in [0, 0.5].
        db (bool): Plot 20*log10|H| instead of H.
        show (bool): Call plt.show() at the end.

    Returns:
        fig (matplotlib.figure.Figure): The figure.
    """
    f, H = response(result, num_points)
    fig, ax = plt.subplots(1, 1, figsize=(10, 4))

    if db:
        ax.plot(f, 20 * np.log10(np.maximum(np.abs(H), 1e-12)), color='black')
        ax.set_ylabel('Magnitude [dB]')
    else:
        ax.plot(f, H, color='black')
        ax.set_ylabel('Amplitude')
        for (f0, f1), d in zip(result.spec.bands, result.spec.des):
            ax.plot([f0, f1], [d, d], color='orange', linewidth=3, alpha=0.6)

    for f0, f1 in result.spec.bands:
        ax.axvspan(f0, f1, color='gray', alpha=0.1)

    ax.set_title('Designed amplitude response')
    ax.set_xlabel('Frequency [cycles/sample]')
    ax.set_xlim(0, 0.5)

    if show:
        plt.show()
    return fig
