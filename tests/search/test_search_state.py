from __future__ import annotations

import pytest

from engine.core.bitmap import Bitmap
from engine.core.compositor import difference_full
from engine.search.state import DEFAULT_SEARCH_ALPHA, SearchState
from engine.search.worker import Worker
from shapes.ellipse import Ellipse


@pytest.fixture()
def worker(gradient_target: Bitmap, black_canvas: Bitmap) -> Worker:
    w = Worker(gradient_target, seed=5)
    w.reset(black_canvas, difference_full(gradient_target, black_canvas))
    return w


def test_energy_is_cached_idempotent_read(worker: Worker) -> None:
    state = SearchState(worker, Ellipse(16, 12, 5, 4, 32, 24), 128)
    assert not state.evaluated
    e1 = state.energy()
    e2 = state.energy()
    assert e1 == e2
    assert worker.counter == 1
    state.invalidate()
    assert state.energy() == e1
    assert worker.counter == 2


def test_mutate_then_undo_restores_shape_alpha_and_energy(worker: Worker) -> None:
    state = SearchState(worker, Ellipse(16, 12, 5, 4, 32, 24), 0)
    assert state.mutate_alpha and state.alpha == DEFAULT_SEARCH_ALPHA
    e0 = state.energy()
    raw0 = state.shape.raw()
    undo = state.mutate()
    assert not state.evaluated
    state.undo(undo)
    assert state.shape.raw() == raw0
    assert state.alpha == DEFAULT_SEARCH_ALPHA
    assert state.energy() == e0
    assert worker.counter == 1


def test_alpha_mutation_stays_in_range(worker: Worker) -> None:
    state = SearchState(worker, Ellipse(16, 12, 5, 4, 32, 24), 0)
    for _ in range(500):
        state.mutate()
        assert 1 <= state.alpha <= 255


def test_fixed_alpha_is_not_mutated(worker: Worker) -> None:
    state = SearchState(worker, Ellipse(16, 12, 5, 4, 32, 24), 77)
    for _ in range(20):
        state.mutate()
    assert state.alpha == 77


def test_copy_shares_worker_and_detaches_shape(worker: Worker) -> None:
    state = SearchState(worker, Ellipse(16, 12, 5, 4, 32, 24), 128)
    cp = state.copy()
    assert cp.worker is worker
    cp.shape.cx = 3
    assert state.shape.cx == 16


@pytest.mark.parametrize("alpha", [-1, 256])
def test_alpha_range_validation(worker: Worker, alpha: int) -> None:
    with pytest.raises(ValueError):
        SearchState(worker, Ellipse(1, 1, 1, 1, 32, 24), alpha)


def test_explicit_mutate_alpha_needs_nonzero_alpha(worker: Worker) -> None:
    with pytest.raises(ValueError):
        SearchState(worker, Ellipse(1, 1, 1, 1, 32, 24), 0, mutate_alpha=True)


def test_worker_requires_reset(gradient_target: Bitmap) -> None:
    w = Worker(gradient_target)
    with pytest.raises(RuntimeError):
        w.energy(Ellipse(1, 1, 1, 1, 32, 24), 128)
    with pytest.raises(ValueError):
        w.reset(Bitmap(3, 3), 0.0)
