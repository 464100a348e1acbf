"""Boundary to the service that actually touches files.

The planner only produces textual procedure and rollback steps.  A
:class:`MutationService` receives them as a plan advances; the default
implementation logs and does nothing else.  Implementations signal a
failed step by raising :class:`~safechange_cli.errors.PlanStepError`.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from .models import ChangePlan

logger = logging.getLogger(__name__)

STEP_MESSAGES = {
    "analysis": "Dependency analysis reviewed",
    "backup": "Backup created",
    "preparation": "Change prepared",
    "execution": "Change executed",
    "validation": "Change validated",
    "cleanup": "Cleanup finished",
}


class MutationService(ABC):
    """Performs the side effects behind plan steps and rollback actions."""

    @abstractmethod
    def perform_step(self, plan: ChangePlan, step: str) -> None:
        ...

    @abstractmethod
    def perform_rollback(self, plan: ChangePlan, action: str) -> None:
        ...


class LoggingMutationService(MutationService):
    """Records what would happen without changing anything on disk."""

    def perform_step(self, plan: ChangePlan, step: str) -> None:
        logger.info("[%s] %s: %s", plan.id, step, STEP_MESSAGES.get(step, step))

    def perform_rollback(self, plan: ChangePlan, action: str) -> None:
        logger.info("[%s] rollback: %s", plan.id, action)
