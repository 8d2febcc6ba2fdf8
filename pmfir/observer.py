"""Observer interfaces for tapping into the Remez exchange iteration."""
from __future__ import annotations

import os
from typing import List, Protocol, Sequence

import numpy as np

from pmfir.exchange import ExtremalSet
from pmfir.grid import Grid


class Observer(Protocol):
    """Interface for receiving callbacks from the designer.

    Callbacks are invoked synchronously and receive live arrays; observers
    that keep data must copy it.
    """

    def on_grid(self, grid: Grid) -> None:
        ...

    def on_iteration(self, iteration: int, extremal: ExtremalSet, error: np.ndarray) -> None:
        ...

    def on_exchange(self, iteration: int, found: Sequence[int], iext: np.ndarray, num_changes: int) -> None:
        ...

    def on_finish(self, result) -> None:
        ...


class NullObserver:
    """Default observer that drops all callbacks."""

    def on_grid(self, grid: Grid) -> None:
        pass

    def on_iteration(self, iteration: int, extremal: ExtremalSet, error: np.ndarray) -> None:
        pass

    def on_exchange(self, iteration: int, found: Sequence[int], iext: np.ndarray, num_changes: int) -> None:
        pass

    def on_finish(self, result) -> None:
        pass


class PrintObserver(NullObserver):
    """Prints a short progress line per iteration."""

    def on_grid(self, grid: Grid) -> None:
        print(f"Grid: {grid.grid_size} points, df = {grid.df:.8f}")

    def on_iteration(self, iteration: int, extremal: ExtremalSet, error: np.ndarray) -> None:
        print(f"[{iteration:3d}] rho = {extremal.rho: .6e}, max|E| = {np.max(np.abs(error)):.6e}")

    def on_exchange(self, iteration: int, found: Sequence[int], iext: np.ndarray, num_changes: int) -> None:
        print(f"[{iteration:3d}] {len(found)} candidates, changes: {num_changes}")

    def on_finish(self, result) -> None:
        print(f"Final Stats:\n\tStatus: {result.status.value}\n\tIterations: {result.iterations}\n\trho: {result.rho:.6e}")


class ObserverGroup(NullObserver):
    """Fans every callback out to several observers, in order."""

    def __init__(self, *observers: Observer) -> None:
        self.observers = list(observers)

    def on_grid(self, grid: Grid) -> None:
        for observer in self.observers:
            observer.on_grid(grid)

    def on_iteration(self, iteration: int, extremal: ExtremalSet, error: np.ndarray) -> None:
        for observer in self.observers:
            observer.on_iteration(iteration, extremal, error)

    def on_exchange(self, iteration: int, found: Sequence[int], iext: np.ndarray, num_changes: int) -> None:
        for observer in self.observers:
            observer.on_exchange(iteration, found, iext, num_changes)

    def on_finish(self, result) -> None:
        for observer in self.observers:
            observer.on_finish(result)


class TraceRecorder(NullObserver):
    """
    Keeps per-iteration copies of the error curve and the extremal indices.

    Attributes
    ----------
    errors : list of ndarray
        Error curve E of every iteration.
    rhos : list of float
        Signed deviation of every iteration.
    candidates : list of ndarray
        Candidate extrema before pruning.
    iext : list of ndarray
        Extremal indices after the exchange.
    changes : list of int
        Change count of every exchange.
    """

    def __init__(self) -> None:
        self.frequencies: np.ndarray | None = None
        self.errors: List[np.ndarray] = []
        self.rhos: List[float] = []
        self.candidates: List[np.ndarray] = []
        self.iext: List[np.ndarray] = []
        self.changes: List[int] = []

    def on_grid(self, grid: Grid) -> None:
        self.frequencies = grid.F.copy()

    def on_iteration(self, iteration: int, extremal: ExtremalSet, error: np.ndarray) -> None:
        self.errors.append(np.array(error, copy=True))
        self.rhos.append(extremal.rho)

    def on_exchange(self, iteration: int, found: Sequence[int], iext: np.ndarray, num_changes: int) -> None:
        self.candidates.append(np.asarray(found, dtype=np.intp))
        self.iext.append(np.array(iext, dtype=np.intp, copy=True))
        self.changes.append(int(num_changes))

    def save(self, directory: str) -> List[str]:
        """Write one text file per iteration and quantity; returns the paths written."""
        os.makedirs(directory, exist_ok=True)
        paths = []
        if self.frequencies is not None:
            path = os.path.join(directory, "grid.dat")
            np.savetxt(path, self.frequencies, fmt="%16.8e")
            paths.append(path)
        for k, error in enumerate(self.errors):
            path = os.path.join(directory, f"error_{k:03d}.dat")
            np.savetxt(path, error, fmt="%16.8e")
            paths.append(path)
        for k, (found, iext) in enumerate(zip(self.candidates, self.iext)):
            path = os.path.join(directory, f"iext_{k:03d}.dat")
            np.savetxt(path, found, fmt="%d")
            paths.append(path)
            path = os.path.join(directory, f"iext_new_{k:03d}.dat")
            np.savetxt(path, iext, fmt="%d")
            paths.append(path)
        return paths
