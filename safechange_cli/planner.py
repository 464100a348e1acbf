"""Safe change planning: create, execute step by step, and roll back.

A plan moves ``pending -> in_progress -> completed`` one step per
:meth:`ChangePlanner.execute_change_plan` call, through the fixed sequence
analysis, backup, preparation, execution, validation, cleanup.  A step
that raises leaves the plan ``failed`` at that step; from there only a
rollback is accepted.  ``completed`` and ``rolled_back`` are terminal.
"""

from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from .errors import PlanNotFound, PlanTargetNotFound
from .impact import ImpactPredictor, impact_kind_for
from .models import (
    CHANGE_STEPS,
    CHANGE_TYPES,
    AnalysisRecord,
    ChangePlan,
    ImpactRecord,
    StepResult,
    ValidationResult,
    dedupe_affected_files,
)
from .mutation import STEP_MESSAGES, LoggingMutationService, MutationService
from .orchestrator import DependencyAnalyzer
from .storage import PlanStore
from .validation_engine import ValidationEngine

logger = logging.getLogger(__name__)

MANY_IMPACTS = 10
MANY_DEPENDENTS = 5


def _now() -> str:
    return datetime.now().isoformat()


def generate_plan_id() -> str:
    return f"plan_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def _numbered(steps: List[str]) -> List[str]:
    return [f"{index}. {step}" for index, step in enumerate(steps, 1)]


# ---------------------------------------------------------------------------
# Plan text templates
# ---------------------------------------------------------------------------

def build_procedure(change_type: str, record: AnalysisRecord, impacts: List[ImpactRecord]) -> List[str]:
    affected = len(dedupe_affected_files(impacts))
    steps = [
        "Complete dependency analysis",
        "Create backup",
        f"Review affected files ({affected})",
    ]
    if change_type == "delete":
        steps += ["Remove all references", "Delete the file"]
    elif change_type == "rename":
        steps += ["Create the file under its new name", "Update all references", "Remove the old file"]
    elif change_type == "move":
        steps += ["Copy the file to its new location", "Update import paths", "Remove the old file"]
    elif change_type == "add":
        steps += ["Create the file"]
    else:
        steps += ["Modify the file"]
    steps += ["Validate the change", "Run tests", "Update documentation"]
    return _numbered(steps)


def build_rollback_plan(change_type: str, impacts: List[ImpactRecord]) -> List[str]:
    steps = ["Restore original file from backup"]
    if change_type == "delete":
        steps.append("Restore the deleted file")
    elif change_type == "rename":
        steps += ["Rename the file back", "Restore all references"]
    elif change_type == "move":
        steps += ["Move the file back", "Restore import paths"]
    elif change_type == "add":
        steps.append("Remove the added file")
    else:
        steps.append("Restore the modified file to its original content")
    if impacts:
        steps.append("Restore affected files")
    steps.append("Validate and run tests")
    return _numbered(steps)


def build_validation_checks(file_path: str, record: AnalysisRecord) -> List[str]:
    checks = ["No syntax errors", "No type errors", "No lint errors"]
    if record.dependents:
        checks += ["Dependent files work", "Import/export relationships intact"]
    if "/api/" in file_path:
        checks += ["API endpoints respond", "Error handling works"]
    if "/utils/" in file_path:
        checks += ["Utility functions work", "All call sites work"]
    return checks


def identify_risks(record: AnalysisRecord, impacts: List[ImpactRecord]) -> List[str]:
    risks = []
    if record.risk_level in ("critical", "high"):
        risks.append(f"{record.risk_level.capitalize()} risk file: change carefully")
    if len(impacts) > MANY_IMPACTS:
        risks.append("Many files affected: run broad tests")
    if any(impact.impact_type == "breaking" for impact in impacts):
        risks.append("Breaking change detected: backward compatibility at risk")
    return risks


def build_recommendations(change_type: str, record: AnalysisRecord) -> List[str]:
    recommendations = []
    if change_type == "delete":
        recommendations += ["Remove all references before deleting", "Prepare a replacement"]
    elif change_type == "rename":
        recommendations += ["Rename in stages and keep an alias meanwhile", "Update all references"]
    elif change_type == "move":
        recommendations += ["Keep a re-export at the old path meanwhile", "Update all import paths"]
    elif change_type == "modify":
        recommendations += ["Keep backward compatibility", "Version the API if its contract changes"]
    if len(record.dependents) > MANY_DEPENDENTS:
        recommendations.append("Many dependents: consider a staged change")
    recommendations += ["Run the full test suite after the change", "Update documentation"]
    return recommendations


# ---------------------------------------------------------------------------
# Planner
# ---------------------------------------------------------------------------

class ChangePlanner:
    """Creates and drives change plans held in an injected :class:`PlanStore`."""

    def __init__(
        self,
        analyzer: Optional[DependencyAnalyzer] = None,
        store: Optional[PlanStore] = None,
        mutation_service: Optional[MutationService] = None,
        validator: Optional[ValidationEngine] = None,
        root: Optional[Path] = None,
    ):
        self.analyzer = analyzer or DependencyAnalyzer()
        self.store = store if store is not None else PlanStore()
        self.mutation_service = mutation_service or LoggingMutationService()
        self.validator = validator or ValidationEngine()
        self.root = root

    # -- creation -----------------------------------------------------------

    def create_change_plan(self, file_path: str, change_type: str, description: str) -> ChangePlan:
        """Analyze the project afresh and register a pending plan for *file_path*.

        Raises:
            PlanTargetNotFound: If *file_path* is not part of the analyzed graph
            ValueError: If *change_type* is unknown
        """
        if change_type not in CHANGE_TYPES:
            raise ValueError(f"Unsupported change type: {change_type}")

        logger.info("Creating change plan (%s): %s", change_type, file_path)
        records = self.analyzer.analyze_project(self.root)
        record = records.get(file_path)
        if record is None:
            raise PlanTargetNotFound(file_path)

        impacts = ImpactPredictor(records).predict(file_path, impact_kind_for(change_type))
        now = _now()
        plan = ChangePlan(
            id=generate_plan_id(),
            file_path=file_path,
            change_type=change_type,
            description=description,
            created_at=now,
            updated_at=now,
            analysis=record,
            impacts=impacts,
            procedure=build_procedure(change_type, record, impacts),
            risks=identify_risks(record, impacts),
            recommendations=build_recommendations(change_type, record),
            rollback_plan=build_rollback_plan(change_type, impacts),
            validation_checks=build_validation_checks(file_path, record),
        )
        self.store.register(plan)

        if self.requires_confirmation(plan):
            logger.warning(
                "%s is %s risk; %d file(s) affected, %d breaking",
                file_path,
                record.risk_level,
                len(plan.affected_files),
                sum(1 for impact in impacts if impact.impact_type == "breaking"),
            )
        logger.info("Change plan created: %s", plan.id)
        return plan

    @staticmethod
    def requires_confirmation(plan: ChangePlan) -> bool:
        """True when a human should review the plan before it runs."""
        if plan.analysis is not None and plan.analysis.risk_level in ("high", "critical"):
            return True
        return any(impact.impact_type == "breaking" for impact in plan.impacts)

    # -- lookup ---------------------------------------------------------------

    def _require(self, plan_id: str) -> ChangePlan:
        plan = self.store.get(plan_id)
        if plan is None:
            raise PlanNotFound(plan_id)
        return plan

    def get_change_plan(self, plan_id: str) -> Optional[ChangePlan]:
        return self.store.get(plan_id)

    def list_change_plans(self) -> List[ChangePlan]:
        return self.store.list()

    def delete_change_plan(self, plan_id: str) -> None:
        """Forget a plan.  Raises :class:`PlanNotFound` for an unknown id."""
        with self.store.locked(plan_id):
            self._require(plan_id)
            self.store.delete(plan_id)
        logger.info("Deleted change plan %s", plan_id)

    def summarize(self) -> Dict[str, int]:
        plans = self.list_change_plans()
        summary = {"total": len(plans)}
        for status in ("pending", "in_progress", "completed", "failed", "rolled_back"):
            summary[status] = sum(1 for plan in plans if plan.status == status)
        return summary

    # -- execution ------------------------------------------------------------

    def execute_change_plan(self, plan_id: str) -> StepResult:
        """Run the plan's current step and advance to the next one."""
        with self.store.locked(plan_id):
            plan = self._require(plan_id)

            if plan.is_terminal:
                return StepResult(False, f"Plan is already {plan.status}")
            if plan.status == "failed":
                return StepResult(
                    False,
                    f"Plan failed at step '{plan.current_step}'; roll back before continuing",
                )

            logger.info("Executing %s (%s) step %s", plan.id, plan.file_path, plan.current_step)
            step = plan.current_step
            plan.status = "in_progress"
            plan.updated_at = _now()
            try:
                result = self._run_step(plan, step)
            except Exception as exc:
                plan.status = "failed"
                plan.last_error = str(exc)
                plan.updated_at = _now()
                logger.error("Plan %s failed at step %s: %s", plan.id, step, exc)
                result = StepResult(False, f"Step '{step}' failed: {exc}")
            self.store.save(plan)
            return result

    def execute_all(self, plan_id: str) -> List[StepResult]:
        """Execute steps until the plan completes or a step fails."""
        results: List[StepResult] = []
        while True:
            result = self.execute_change_plan(plan_id)
            results.append(result)
            if not result.success or result.next_step is None:
                return results

    def _run_step(self, plan: ChangePlan, step: str) -> StepResult:
        if step == "analysis" and plan.risks:
            for risk in plan.risks:
                logger.warning("[%s] %s", plan.id, risk)
        elif step == "validation":
            for check in plan.validation_checks:
                logger.info("[%s] check: %s", plan.id, check)

        self.mutation_service.perform_step(plan, step)

        plan.updated_at = _now()
        index = CHANGE_STEPS.index(step)
        if index == len(CHANGE_STEPS) - 1:
            plan.status = "completed"
            return StepResult(True, "All steps completed")

        next_step = CHANGE_STEPS[index + 1]
        plan.current_step = next_step
        return StepResult(True, STEP_MESSAGES[step], next_step=next_step)

    # -- rollback ---------------------------------------------------------------

    def rollback_change_plan(self, plan_id: str) -> StepResult:
        """Hand every rollback action to the mutation service, in order."""
        with self.store.locked(plan_id):
            plan = self._require(plan_id)
            if plan.is_terminal:
                return StepResult(False, f"Plan is already {plan.status}")

            logger.info("Rolling back %s (%s)", plan.id, plan.file_path)
            try:
                for action in plan.rollback_plan:
                    self.mutation_service.perform_rollback(plan, action)
            except Exception as exc:
                plan.last_error = str(exc)
                plan.updated_at = _now()
                self.store.save(plan)
                logger.error("Rollback of %s failed: %s", plan.id, exc)
                return StepResult(False, f"Rollback failed: {exc}")

            plan.status = "rolled_back"
            plan.updated_at = _now()
            self.store.save(plan)
            return StepResult(True, "Rollback completed")

    # -- validation -------------------------------------------------------------

    def validate_change(self, file_path: str, change_type: str, content: str) -> ValidationResult:
        return self.validator.validate_change(file_path, change_type, content)
