from __future__ import annotations

import pickle

import pytest

from engine.core.bitmap import Bitmap
from engine.core.compositor import difference_full
from engine.runtime.worker import WorkerPool, WorkerTaskError, partition_trials
from engine.search.worker import Worker

KINDS = ["triangle", "ellipse"]


def test_partition_trials_ceiling_division() -> None:
    assert partition_trials(16, 4) == [4, 4, 4, 4]
    assert partition_trials(10, 4) == [3, 3, 3, 3]
    assert partition_trials(1, 3) == [1, 1, 1]
    assert sum(partition_trials(7, 3)) >= 7
    with pytest.raises(ValueError):
        partition_trials(0, 2)
    with pytest.raises(ValueError):
        partition_trials(2, 0)


def test_worker_task_error_pickles() -> None:
    err = WorkerTaskError(2, RuntimeError("boom"), step_id=5)
    back = pickle.loads(pickle.dumps(err))
    assert isinstance(back, WorkerTaskError)
    assert back.lane_id == 2
    assert back.step_id == 5
    assert "boom" in str(back)
    # メッセージ単独からも復元できる
    assert str(WorkerTaskError("only message")) == "only message"


def test_inline_pool_returns_one_packet_per_lane(
    gradient_target: Bitmap, black_canvas: Bitmap
) -> None:
    score = difference_full(gradient_target, black_canvas)
    with WorkerPool(gradient_target, 3, use_processes=False, seed=1) as pool:
        assert pool.inline and pool.num_workers == 3
        packets = pool.run(black_canvas, score, KINDS, 128, 8, 10, 5)
    assert [p.lane_id for p in packets] == [0, 1, 2]
    assert len({p.step_id for p in packets}) == 1
    for p in packets:
        assert p.shape.kind.value in KINDS
        assert p.alpha == 128
        assert p.evaluations > 0
        assert p.energy < score


def test_inline_pool_is_reproducible_with_seed(
    gradient_target: Bitmap, black_canvas: Bitmap
) -> None:
    score = difference_full(gradient_target, black_canvas)
    runs = []
    for _ in range(2):
        with WorkerPool(gradient_target, 2, use_processes=False, seed=77) as pool:
            runs.append([p.energy for p in pool.run(black_canvas, score, KINDS, 128, 5, 5, 2)])
    assert runs[0] == runs[1]


def test_lane_failure_fails_whole_step(
    gradient_target: Bitmap, black_canvas: Bitmap, monkeypatch: pytest.MonkeyPatch
) -> None:
    original = Worker.best_hill_climb_state

    def _flaky(self: Worker, *args, **kwargs):
        if self.lane_id == 1:
            raise RuntimeError("lane exploded")
        return original(self, *args, **kwargs)

    monkeypatch.setattr(Worker, "best_hill_climb_state", _flaky)
    pool = WorkerPool(gradient_target, 2, use_processes=False, seed=0)
    with pytest.raises(WorkerTaskError) as info:
        pool.run(black_canvas, 1.0, KINDS, 128, 2, 2, 2)
    assert info.value.lane_id == 1
    assert isinstance(info.value.original, RuntimeError)
    pool.close()
    pool.close()  # 冪等


def test_run_after_close_and_size_mismatch(gradient_target: Bitmap) -> None:
    pool = WorkerPool(gradient_target, 1, use_processes=False)
    with pytest.raises(ValueError):
        pool.run(Bitmap(2, 2), 0.0, KINDS, 128, 1, 1, 1)
    pool.close()
    with pytest.raises(RuntimeError):
        pool.run(Bitmap(32, 24), 0.0, KINDS, 128, 1, 1, 1)


def test_invalid_worker_count(gradient_target: Bitmap) -> None:
    with pytest.raises(ValueError):
        WorkerPool(gradient_target, 0, use_processes=False)


@pytest.mark.integration
def test_process_pool_runs_multiple_steps(
    gradient_target: Bitmap, black_canvas: Bitmap
) -> None:
    score = difference_full(gradient_target, black_canvas)
    pool = WorkerPool(gradient_target, 2, use_processes=True, seed=3)
    try:
        for _ in range(2):
            packets = pool.run(black_canvas, score, KINDS, 128, 4, 5, 2)
            assert [p.lane_id for p in packets] == [0, 1]
            assert all(p.energy < score for p in packets)
    finally:
        pool.close()
    pool.close()
