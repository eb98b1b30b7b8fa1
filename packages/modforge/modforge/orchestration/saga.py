"""Orchestration layer — Compensation stack.

Every pipeline stage that changes the filesystem registers the action that
undoes it.  When a later stage fails, the stack unwinds in reverse order so
the project returns to the state it was in before the invocation.

Compensations never raise: a failing compensation is logged and the unwind
continues, so the original error always reaches the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from modforge.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class Compensation:
    stage: str
    run: Callable[[], None]


class CompensationStack:
    """LIFO list of compensating actions for one pipeline run.

    Usage::

        stack = CompensationStack()
        path = provisioner.provision(descriptor)
        stack.push("provision_templates", lambda: provisioner.deprovision(path))
        ...
        stack.unwind()   # on failure
        stack.commit()   # on success
    """

    def __init__(self) -> None:
        self._actions: list[Compensation] = []
        self._deferred: list[Compensation] = []

    def __len__(self) -> int:
        return len(self._actions)

    def push(self, stage: str, undo: Callable[[], None]) -> None:
        self._actions.append(Compensation(stage=stage, run=undo))

    def defer(self, stage: str, action: Callable[[], None]) -> None:
        """Schedule *action* to run on commit only (e.g. purging stashed files)."""
        self._deferred.append(Compensation(stage=stage, run=action))

    def commit(self) -> None:
        """Forget all compensations and run deferred actions, in order.

        The pipeline has already succeeded at this point, so a failing
        deferred action is logged and skipped.
        """
        self._actions.clear()
        deferred, self._deferred = self._deferred, []
        for action in deferred:
            try:
                action.run()
            except Exception as exc:
                log.warning("deferred_action_failed", stage=action.stage, error=str(exc))

    def unwind(self) -> list[str]:
        """Run every compensation, newest first. Returns the stages that failed to undo."""
        failed: list[str] = []
        self._deferred.clear()
        while self._actions:
            action = self._actions.pop()
            log.info("compensation_executing", stage=action.stage)
            try:
                action.run()
            except Exception as exc:
                log.error("compensation_failed", stage=action.stage, error=str(exc))
                failed.append(action.stage)
            else:
                log.info("compensation_completed", stage=action.stage)
        return failed
