"""Per-stage timing and call bookkeeping for step pipelines."""

import logging
import threading
import time
from contextlib import contextmanager
from typing import Iterator

import numpy as np


class StageProfiler:
    """Records how often, in which order and how long each stage of a step runs.

    Timings are kept in a rolling window of the last `sample_count` calls per
    stage, plus one window of whole-step durations. With `report` enabled, a
    summary line is logged every `sample_count` steps.

    Usage:
        profiler = StageProfiler("FluidFlow")
        profiler.begin_step()
        with profiler.stage("advect_density"):
            ...
        profiler.end_step()
    """

    def __init__(self, name: str = "Stages", sample_count: int = 100) -> None:
        self.name: str = name
        self.sample_count: int = sample_count
        self.report: bool = False
        self.counts: dict[str, int] = {}
        self.last_order: list[str] = []
        self.steps: int = 0

        self._stage_times: dict[str, np.ndarray] = {}
        self._step_times: np.ndarray = np.zeros(sample_count, dtype=float)
        self._current_order: list[str] = []
        self._step_start: float = 0.0
        self._mutex = threading.Lock()

    def begin_step(self) -> None:
        self._current_order = []
        self._step_start = time.perf_counter()

    def end_step(self) -> None:
        elapsed_ms: float = (time.perf_counter() - self._step_start) * 1000.0
        with self._mutex:
            self._step_times[self.steps % self.sample_count] = elapsed_ms
            self.last_order = self._current_order
            self._current_order = []
            self.steps += 1
            should_report = self.steps % self.sample_count == 0

        if self.report and should_report:
            self._report()

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        start: float = time.perf_counter()
        try:
            yield
        finally:
            elapsed_ms: float = (time.perf_counter() - start) * 1000.0
            with self._mutex:
                times = self._stage_times.get(name)
                if times is None:
                    times = np.zeros(self.sample_count, dtype=float)
                    self._stage_times[name] = times
                count = self.counts.get(name, 0)
                times[count % self.sample_count] = elapsed_ms
                self.counts[name] = count + 1
                self._current_order.append(name)

    def _window(self, times: np.ndarray, count: int) -> np.ndarray:
        return times[:min(count, self.sample_count)]

    def average_ms(self, name: str) -> float:
        with self._mutex:
            times = self._stage_times.get(name)
            if times is None:
                return 0.0
            return float(np.mean(self._window(times, self.counts[name])))

    def maximum_ms(self, name: str) -> float:
        with self._mutex:
            times = self._stage_times.get(name)
            if times is None:
                return 0.0
            return float(np.max(self._window(times, self.counts[name])))

    def step_average_ms(self) -> float:
        with self._mutex:
            if self.steps == 0:
                return 0.0
            return float(np.mean(self._window(self._step_times, self.steps)))

    def _report(self) -> None:
        stages = ", ".join(f"{name} {self.average_ms(name):.2f}" for name in self.last_order)
        logging.info(f"{self.name}: step avg={self.step_average_ms():.2f}ms ({stages})")

    def reset(self) -> None:
        with self._mutex:
            self._stage_times.clear()
            self._step_times.fill(0)
            self.counts.clear()
            self.last_order = []
            self._current_order = []
            self.steps = 0
