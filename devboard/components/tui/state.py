"""Canonical dashboard state: one record per registered worker, console text
and the pending missing-dependency prompt.

The store holds mutation primitives only. State transitions live in
``event_handler.EventReducer``. Passing an unregistered worker id to a
mutator is a caller bug and raises ``KeyError``.
"""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Union

from devboard.models import WorkerConfig


@dataclass(frozen=True)
class Absent:
    """No transient status reported."""


@dataclass(frozen=True)
class Label:
    text: str


@dataclass(frozen=True)
class StyledLabel:
    text: str
    style: str


WorkerState = Union[Absent, Label, StyledLabel]

ABSENT = Absent()


@dataclass
class WorkerRecord:
    """Everything the dashboard knows about one worker."""

    config: WorkerConfig
    state: WorkerState = ABSENT
    done: bool = False
    error: Any = None
    output: str = ""


@dataclass
class SessionState:
    workers: dict[str, WorkerRecord] = field(default_factory=dict)
    console_buffer: str = ""
    was_cleared: bool = False
    missing_module: str | None = None
    missing_module_resolvable: bool = False


class StateStore:
    """Holds the single SessionState of a dashboard run."""

    def __init__(self) -> None:
        self._state = SessionState()
        self._initialized = False

    def init_workers(self, configs: Iterable[WorkerConfig]) -> None:
        """Register the fixed worker set. May only be called once."""
        if self._initialized:
            raise RuntimeError("Workers are already registered")
        workers: dict[str, WorkerRecord] = {}
        for config in configs:
            if config.id in workers:
                raise ValueError(f"Duplicate worker id: {config.id}")
            workers[config.id] = WorkerRecord(config=config)
        self._state.workers = workers
        self._initialized = True

    def get_snapshot(self) -> SessionState:
        return self._state

    def has_worker(self, worker_id: str) -> bool:
        return worker_id in self._state.workers

    def append_output(self, worker_id: str, text: str) -> None:
        self._state.workers[worker_id].output += text

    def set_state(self, worker_id: str, state: WorkerState) -> None:
        self._state.workers[worker_id].state = state

    def set_done(self, worker_id: str) -> None:
        self._state.workers[worker_id].done = True

    def set_error(self, worker_id: str, error: Any) -> None:
        self._state.workers[worker_id].error = error

    def reset_worker(self, worker_id: str) -> None:
        config = self._state.workers[worker_id].config
        self._state.workers[worker_id] = WorkerRecord(config=config)

    def append_console(self, text: str) -> None:
        self._state.console_buffer += text

    def clear_console(self) -> None:
        self._state.console_buffer = ""
        self._state.was_cleared = True

    def set_missing_module(self, specifier: str, resolvable: bool) -> None:
        self._state.missing_module = specifier
        self._state.missing_module_resolvable = resolvable

    def clear_missing_module(self) -> None:
        self._state.missing_module = None
