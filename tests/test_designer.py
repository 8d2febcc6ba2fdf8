import numpy as np
import pytest

import pmfir.designer
import pmfir.exchange
from pmfir import (
    DesignConfig,
    DesignState,
    DesignStateError,
    FilterDesigner,
    FilterSpec,
    NumericalError,
    ResourceError,
    TraceRecorder,
    ValidationError,
    design,
)
from pmfir.exchange import alternating_signs


def test_designer_builds_grid_on_construction(lowpass_spec):
    designer = FilterDesigner(lowpass_spec)
    assert designer.state is DesignState.GRID_BUILT
    assert designer.grid.grid_size == 64
    assert designer.extremal is None


def test_initial_guess(lowpass_spec):
    designer = FilterDesigner(lowpass_spec)
    designer.initialize()
    assert designer.state is DesignState.ITERATING
    assert designer.iext.tolist() == [0, 12, 25, 37, 50, 63]


def test_lowpass_converges_equiripple(lowpass_spec, loose_tolerance):
    result = FilterDesigner(lowpass_spec).run()

    assert result.status is DesignState.CONVERGED
    assert result.converged
    assert result.num_changes == 0
    assert 1 <= result.iterations <= DesignConfig().max_iterations

    iext = result.iext
    assert iext.shape[0] == 6
    assert np.all(np.diff(iext) > 0)

    E = result.grid.E[iext]
    assert abs(result.rho) > 0
    assert np.allclose(np.abs(E), abs(result.rho), rtol=loose_tolerance)
    assert np.all(np.sign(E[1:]) == -np.sign(E[:-1]))
    # no grid point exceeds the equiripple level
    assert np.max(np.abs(result.grid.E)) <= abs(result.rho) * (1 + loose_tolerance)


def test_lowpass_response_shape(lowpass_spec):
    result = FilterDesigner(lowpass_spec).run()
    delta = abs(result.rho)
    passband = np.linspace(0.0, 0.2, 33)
    stopband = np.linspace(0.3, 0.5, 33)
    assert np.all(np.abs(result.response(passband) - 1.0) <= 1.05 * delta)
    assert np.all(np.abs(result.response(stopband)) <= 1.05 * delta)
    assert result.response(0.0) > result.response(0.5)


def test_one_more_step_after_convergence_is_idempotent(lowpass_spec):
    designer = FilterDesigner(lowpass_spec)
    designer.run()
    iext = designer.iext.copy()
    assert designer.step() == 0
    assert designer.state is DesignState.CONVERGED
    assert designer.iext.tolist() == iext.tolist()


def test_extremal_set_size_every_iteration(any_spec):
    recorder = TraceRecorder()
    result = FilterDesigner(any_spec, observer=recorder).run()
    assert result.status in (DesignState.CONVERGED, DesignState.EXHAUSTED)
    assert len(recorder.iext) == result.iterations
    for iext in recorder.iext:
        assert iext.shape[0] == any_spec.r + 1
        assert np.all(np.diff(iext) > 0)


def test_error_at_extremals_alternates(any_spec, loose_tolerance):
    result = FilterDesigner(any_spec).run()
    E = result.grid.E[result.iext]
    assert np.allclose(E, alternating_signs(E.shape[0]) * result.rho, atol=loose_tolerance * max(1.0, abs(result.rho)))


def test_weighting_trades_ripple():
    light = design(15, [(0.0, 0.15), (0.25, 0.5)], [1.0, 0.0], [1.0, 1.0])
    heavy = design(15, [(0.0, 0.15), (0.25, 0.5)], [1.0, 0.0], [1.0, 10.0])
    stop = heavy.grid.band_slice(1)
    assert np.max(np.abs(heavy.response(heavy.grid.F[stop]))) < np.max(np.abs(light.response(light.grid.F[stop])))


def test_flat_band_degenerates_to_constant(flat_spec, tolerance):
    result = FilterDesigner(flat_spec).run()
    assert result.status is DesignState.CONVERGED
    assert abs(result.rho) < tolerance
    assert np.all(np.abs(result.grid.E[result.iext]) < tolerance)
    assert np.allclose(result.response(np.linspace(0, 0.5, 11)), 1.0, atol=tolerance)


def test_overlapping_bands_fail_before_grid(monkeypatch):
    def no_grid(*args, **kwargs):
        raise AssertionError("grid must not be built")

    monkeypatch.setattr(pmfir.designer, "build_grid", no_grid)
    with pytest.raises(ValidationError):
        design(9, [(0.0, 0.3), (0.2, 0.5)], [1.0, 0.0], [1.0, 1.0])


def test_designer_rejects_non_spec():
    with pytest.raises(ValidationError):
        FilterDesigner({"h_len": 9})


def test_iteration_cap_gives_exhausted(lowpass_spec):
    designer = FilterDesigner(lowpass_spec, config=DesignConfig(max_iterations=1))
    with pytest.warns(RuntimeWarning, match="did not converge"):
        result = designer.run()
    assert result.status is DesignState.EXHAUSTED
    assert result.iterations == 1
    assert result.num_changes > 0
    assert result.extremal is not None
    assert len(result.extremal) == lowpass_spec.r + 1
    assert np.isfinite(result.response(0.1))


def test_sparse_grid_faults():
    spec = FilterSpec(h_len=9, bands=((0.2, 0.21),), des=(1.0,), weights=(1.0,))
    designer = FilterDesigner(spec)
    result = designer.run()
    assert result.status is DesignState.FAULTED
    assert isinstance(result.fault, NumericalError)
    assert result.extremal is None
    with pytest.raises(NumericalError):
        result.raise_for_status()
    with pytest.raises(DesignStateError):
        designer.step()
    with pytest.raises(DesignStateError):
        result.response(0.2)


def test_fault_during_iteration_records_iteration(lowpass_spec, monkeypatch):
    def degenerate(*args, **kwargs):
        raise NumericalError("Degenerate rho denominator (0.000e+00)")

    monkeypatch.setattr(pmfir.designer.ExtremalSet, "from_indices", degenerate)
    result = FilterDesigner(lowpass_spec).run()
    assert result.status is DesignState.FAULTED
    assert result.iterations == 1
    assert result.fault.iteration == 1
    assert "iteration 1" in str(result.fault)


def test_step_initializes_lazily(lowpass_spec):
    designer = FilterDesigner(lowpass_spec)
    changes = designer.step()
    assert designer.iteration == 1
    assert changes > 0
    assert designer.state is DesignState.ITERATING


def test_design_is_deterministic(bandpass_spec):
    a = FilterDesigner(bandpass_spec).run()
    b = FilterDesigner(bandpass_spec).run()
    assert a.iterations == b.iterations
    assert a.iext.tolist() == b.iext.tolist()
    assert a.rho == b.rho


def test_design_accepts_flat_edges(lowpass_spec):
    result = design(9, [0.0, 0.2, 0.3, 0.5], [1.0, 0.0])
    assert result.spec == lowpass_spec
    assert result.converged


def test_bad_config():
    with pytest.raises(ValidationError):
        DesignConfig(max_iterations=0)
    with pytest.raises(ValidationError):
        DesignConfig(chunk_size=0)


def test_verbose_run_prints_progress(lowpass_spec, capsys):
    FilterDesigner(lowpass_spec, verbose=True).run()
    out = capsys.readouterr().out
    assert "band :" in out
    assert "rho" in out
    assert "Final Stats" in out


@pytest.mark.parametrize("h_len, band", [
    (58, (0.01, 0.425)),
    (60, (0.245, 0.465)),
    (41, (0.0, 0.4)),
])
def test_constant_band_inside_axis_stays_exact(h_len, band):
    spec = FilterSpec(h_len=h_len, bands=(band,), des=(1.0,), weights=(1.0,))
    recorder = TraceRecorder()
    result = FilterDesigner(spec, observer=recorder).run()
    assert result.status is DesignState.CONVERGED
    assert abs(result.rho) < 1e-12
    # no iteration may trade the exact interpolant for a worse one
    assert max(np.max(np.abs(E)) for E in recorder.errors) < 1e-8
    assert np.allclose(result.response(np.linspace(*band, 37)), 1.0, atol=1e-8)


def test_allocation_failure_during_iteration_faults(lowpass_spec, monkeypatch):
    def out_of_memory(*args, **kwargs):
        raise MemoryError

    monkeypatch.setattr(pmfir.exchange, "barycentric_eval_bound", out_of_memory)
    designer = FilterDesigner(lowpass_spec)
    result = designer.run()
    assert result.status is DesignState.FAULTED
    assert isinstance(result.fault, ResourceError)
    assert isinstance(result.fault.__cause__, MemoryError)
    assert result.iterations == 1
    with pytest.raises(ResourceError):
        result.raise_for_status()
    with pytest.raises(DesignStateError):
        designer.step()


def test_default_config_shares_node_tolerance():
    from pmfir.barycentric import NODE_TOL

    assert DesignConfig().node_tol == NODE_TOL
