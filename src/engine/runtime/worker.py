"""
どこで: `engine.runtime` のワーカ実行層。
何を: 探索レーン（プロセス/インライン）を所有する `WorkerPool`。`run()` は全レーンへ
      `SearchTask` を配り、全レーンの `SearchPacket` が揃うまで待つ（バリア）。例外は
      `WorkerTaskError` でレーン番号付きに伝搬し、1 レーンでも失敗したステップは丸ごと失敗とする。
      `close()` は安全に停止する。
なぜ: 探索（CPU 計算）を複数コアへ分配しつつ、共有状態（現在画像・走行スコア）の更新を
      バリア後の呼び出し側だけに限定するため。

注意（重要）:
- macOS など `multiprocessing` が spawn 方式の環境では、レーンへ渡す目標画像と形状は
  ピクル可能である必要がある（`Bitmap`/各 `BaseShape` はトップレベル定義のプレーンオブジェクト）。
- レーンは起動時に目標画像を 1 度だけ受け取り、以降はステップごとに現在画像の配列だけを受け取る。
- 乱数はレーンごとに `SeedSequence.spawn` で独立に分岐する（seed 指定時は再現可能）。
"""

from __future__ import annotations

import logging
import math
import multiprocessing as mp
from queue import Empty, Queue
from typing import Sequence, cast

import numpy as np

from common import settings as _settings
from engine.core.bitmap import Bitmap
from engine.search.worker import Worker
from shapes.kinds import ShapeKind

from .packet import SearchPacket
from .task import SearchTask

logger = logging.getLogger(__name__)


class WorkerTaskError(Exception):
    """レーン内の例外をラップしてレーン番号/ステップ番号の文脈を付与。

    multiprocessing 経由のシリアライズ/デシリアライズに耐えるよう、
    単一のメッセージ引数でも初期化できるようにする。
    """

    def __init__(
        self,
        lane_id: int | None = None,
        original: Exception | None = None,
        message: str | None = None,
        step_id: int | None = None,
    ) -> None:
        # Unpickle 経路（例外は message だけで復元されることがある）
        if message is None and isinstance(lane_id, str) and original is None:
            message = lane_id
            lane_id = None

        if message is None:
            message = f"WorkerTaskError(lane_id={lane_id}, step_id={step_id}): {original!r}"
        super().__init__(message)
        self.lane_id = lane_id
        self.step_id = step_id
        self.original = original

    def __reduce__(self):
        # 元例外はピクル可能とは限らないため、メッセージと番号だけで再構築する
        return (WorkerTaskError, (self.lane_id, None, str(self), self.step_id))


def partition_trials(m: int, lanes: int) -> list[int]:
    """総ラウンド数 `m` を各レーンへ切り上げ除算で配る（合計は常に `m` 以上）。"""
    if m < 1:
        raise ValueError(f"trials は 1 以上である必要があります: {m}")
    if lanes < 1:
        raise ValueError(f"レーン数は 1 以上である必要があります: {lanes}")
    per_lane = math.ceil(m / lanes)
    return [per_lane] * lanes


def _execute_search(
    worker: Worker, task: SearchTask
) -> tuple[SearchPacket | None, WorkerTaskError | None]:
    """1 ステップ分の reset → 多点開始+山登り → Packet 生成を共通化。

    例外は内部で捕捉して `WorkerTaskError` を返し、呼び出し側では put するだけにする。
    """
    try:
        h, w = task.current.shape
        current = Bitmap(w, h, task.current.ravel(), translucent=worker.target.translucent)
        worker.reset(current, task.score)
        state = worker.best_hill_climb_state(task.kinds, task.alpha, task.n, task.age, task.trials)
        packet = SearchPacket(
            step_id=task.step_id,
            lane_id=worker.lane_id,
            shape=state.shape,
            alpha=state.alpha,
            energy=float(state.energy()),
            evaluations=worker.counter,
        )
        return packet, None
    except Exception as e:
        # 例外を統一ログ（stacktrace 付き）
        logger.exception(
            "[worker] stage=search lane=%s step=%s error=%s", worker.lane_id, task.step_id, e
        )
        return None, WorkerTaskError(worker.lane_id, e, step_id=task.step_id)


class _WorkerProcess(mp.Process):
    """バックグラウンドで探索レーンを回し SearchPacket を生成する。"""

    def __init__(
        self,
        lane_id: int,
        target: Bitmap,
        seed: np.random.SeedSequence,
        task_q: mp.Queue,
        result_q: mp.Queue,
    ):
        super().__init__(daemon=True, name=f"primfit-lane-{lane_id}")
        self.lane_id = lane_id
        self.target = target
        self.seed = seed
        self.task_q, self.result_q = task_q, result_q

    def run(self) -> None:
        """タスクごとに探索を実行し、結果（または例外）を結果キューへ送る。"""
        worker = Worker(self.target, lane_id=self.lane_id, seed=self.seed)
        for task in iter(self.task_q.get, None):  # None = sentinel
            packet, err = _execute_search(worker, task)
            self.result_q.put(err if err is not None else packet)


class WorkerPool:
    """探索レーンの所有と、ステップ単位の分配/待ち合わせのみを担当。

    - `use_processes=True`: レーンごとに daemon プロセスとタスクキューを持ち、結果キューは共有。
    - `use_processes=False`: 同じプロトコルを呼び出し側スレッド内で逐次実行する（テスト/デバッグ用）。
    """

    def __init__(
        self,
        target: Bitmap,
        num_workers: int = 4,
        *,
        use_processes: bool | None = None,
        seed: int | None = None,
    ):
        if num_workers < 1:
            raise ValueError(f"num_workers は 1 以上である必要があります: {num_workers}")
        if use_processes is None:
            use_processes = _settings.get().USE_PROCESSES
        self._target = target
        self._num_workers = int(num_workers)
        self._inline = not use_processes
        self._step_id = 0
        self._timeout = float(_settings.get().RESULT_TIMEOUT)
        seeds = np.random.SeedSequence(seed).spawn(self._num_workers)
        self._task_qs: list[mp.Queue] = []
        self._workers: list[_WorkerProcess] = []
        self._lanes: list[Worker] = []
        self._result_q: Queue[SearchPacket | WorkerTaskError] | mp.Queue
        if self._inline:
            # スレッド内で完結させるため、シリアライズを避ける queue.Queue を利用する
            self._result_q = Queue()
            self._lanes = [
                Worker(target, lane_id=i, seed=seeds[i]) for i in range(self._num_workers)
            ]
        else:
            self._result_q = mp.Queue()
            for i in range(self._num_workers):
                q: mp.Queue = mp.Queue()
                self._task_qs.append(q)
                self._workers.append(_WorkerProcess(i, target, seeds[i], q, self._result_q))
            for w in self._workers:
                w.start()
        logger.debug(
            "worker pool started: lanes=%d mode=%s",
            self._num_workers,
            "inline" if self._inline else "process",
        )
        # 冪等な close() のための内部フラグ
        self._closed: bool = False

    # --------- public API ---------
    @property
    def num_workers(self) -> int:
        return self._num_workers

    @property
    def inline(self) -> bool:
        return self._inline

    def run(
        self,
        current: Bitmap,
        score: float,
        kinds: Sequence[ShapeKind | str],
        alpha: int,
        n: int,
        age: int,
        m: int,
    ) -> list[SearchPacket]:
        """全レーンで 1 ステップ分の探索を行い、レーン番号順の結果を返す。

        例外:
            RuntimeError: close() 済み。
            WorkerTaskError: いずれかのレーンが失敗（または応答なしで終了）した場合。
        """
        if self._closed:
            raise RuntimeError("WorkerPool は close() 済みです")
        if not current.same_size(self._target):
            raise ValueError("現在画像のサイズが目標と一致しません")
        trials = partition_trials(m, self._num_workers)
        self._step_id += 1
        names = tuple(ShapeKind.parse(k).value for k in kinds)
        pixels = current.pixels.copy()
        tasks = [
            SearchTask(
                step_id=self._step_id,
                current=pixels,
                score=float(score),
                kinds=names,
                alpha=int(alpha),
                n=int(n),
                age=int(age),
                trials=t,
            )
            for t in trials
        ]
        if self._inline:
            for lane, task in zip(self._lanes, tasks):
                packet, err = _execute_search(lane, task)
                self._result_q.put(err if err is not None else cast(SearchPacket, packet))
        else:
            for q, task in zip(self._task_qs, tasks):
                q.put(task)
        return self._gather(self._step_id)

    def _gather(self, step_id: int) -> list[SearchPacket]:
        """全レーンの結果が揃うまで待つ。失敗があれば揃った後で最初の失敗を送出する。"""
        packets: dict[int, SearchPacket] = {}
        errors: list[WorkerTaskError] = []
        while len(packets) + len(errors) < self._num_workers:
            try:
                item = self._result_q.get(timeout=self._timeout)
            except Empty:
                self._check_alive()
                continue
            if isinstance(item, WorkerTaskError):
                if item.step_id is not None and item.step_id != step_id:
                    continue
                errors.append(item)
            elif item.step_id == step_id:
                packets[item.lane_id] = item
            else:
                logger.debug("discard stale packet: lane=%d step=%d", item.lane_id, item.step_id)
        if errors:
            raise errors[0]
        return [packets[i] for i in sorted(packets)]

    def _check_alive(self) -> None:
        for w in self._workers:
            if not w.is_alive():
                raise WorkerTaskError(
                    w.lane_id,
                    None,
                    f"レーン {w.lane_id} のプロセスが結果を返さずに終了しました "
                    f"(exitcode={w.exitcode})",
                    self._step_id,
                )

    def close(self) -> None:
        """ワーカプールを停止してキューをクローズ（多重呼び出しに安全）。"""
        if getattr(self, "_closed", False):
            return
        # 以降の例外で途中離脱しても、次回は no-op になるよう先にフラグを立てる
        self._closed = True
        logger.debug("worker pool closing: lanes=%d", self._num_workers)
        if self._inline:
            return
        try:
            for q in self._task_qs:
                try:
                    q.put_nowait(None)
                except (ValueError, OSError):
                    pass
            for w in self._workers:
                w.join(timeout=1.0)
                if w.is_alive():
                    w.terminate()
        finally:
            for q in self._task_qs:
                q.close()
            cast(mp.Queue, self._result_q).close()

    def __enter__(self) -> "WorkerPool":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["WorkerTaskError", "WorkerPool", "partition_trials"]
