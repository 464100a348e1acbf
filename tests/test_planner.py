"""Tests for change plan creation, execution and rollback."""

import threading
from pathlib import Path

import pytest

from safechange_cli.errors import PlanNotFound, PlanStepError, PlanTargetNotFound
from safechange_cli.models import CHANGE_STEPS, AnalysisRecord, ImpactRecord
from safechange_cli.mutation import LoggingMutationService
from safechange_cli.planner import ChangePlanner, generate_plan_id, identify_risks


FORMAT = "src/lib/utils/format.ts"
PAGE = "src/routes/+page.svelte"


class FailingMutationService(LoggingMutationService):
    """Raises on one named step or on any rollback action."""

    def __init__(self, fail_step=None, fail_rollback=False):
        self.fail_step = fail_step
        self.fail_rollback = fail_rollback
        self.rollback_actions = []

    def perform_step(self, plan, step):
        if step == self.fail_step:
            raise PlanStepError(step, "disk full")
        super().perform_step(plan, step)

    def perform_rollback(self, plan, action):
        if self.fail_rollback:
            raise PlanStepError("rollback", "backup missing")
        self.rollback_actions.append(action)


@pytest.fixture
def planner(project_dir: Path, analyzer, plan_store) -> ChangePlanner:
    return ChangePlanner(analyzer=analyzer, store=plan_store, root=Path("src"))


def test_generate_plan_id_is_unique():
    ids = {generate_plan_id() for _ in range(50)}
    assert len(ids) == 50
    assert all(plan_id.startswith("plan_") for plan_id in ids)


def test_missing_target_registers_nothing(planner, plan_store):
    with pytest.raises(PlanTargetNotFound):
        planner.create_change_plan("src/lib/missing.ts", "modify", "nope")
    assert len(plan_store) == 0


def test_unknown_change_type(planner):
    with pytest.raises(ValueError):
        planner.create_change_plan(FORMAT, "explode", "nope")


def test_create_delete_plan(planner, plan_store):
    plan = planner.create_change_plan(FORMAT, "delete", "Drop formatter")

    assert plan.id in plan_store
    assert plan.status == "pending"
    assert plan.current_step == "analysis"
    assert plan.analysis.path == FORMAT
    assert plan.affected_files == [
        "src/lib/api/client.ts",
        "src/routes/+page.svelte",
        "src/routes/dashboard/index.ts",
        "src/lib/stores/user.ts",
    ]
    assert "Breaking change detected: backward compatibility at risk" in plan.risks
    assert plan.procedure[0] == "1. Complete dependency analysis"
    assert "2. Create backup" in plan.procedure
    assert "3. Review affected files (4)" in plan.procedure
    assert any("Restore the deleted file" in step for step in plan.rollback_plan)
    assert "Utility functions work" in plan.validation_checks
    assert planner.requires_confirmation(plan)


def test_low_risk_modify_needs_no_confirmation(planner):
    plan = planner.create_change_plan(PAGE, "modify", "Tweak layout")

    assert plan.impacts == []
    assert plan.risks == []
    assert not planner.requires_confirmation(plan)


def test_high_risk_file_needs_confirmation(planner):
    plan = planner.create_change_plan("src/lib/api/client.ts", "modify", "Retry requests")

    assert plan.analysis.risk_level == "high"
    assert plan.risks[0] == "High risk file: change carefully"
    assert planner.requires_confirmation(plan)


def test_add_and_move_plans(planner):
    add = planner.create_change_plan(PAGE, "add", "Companion file")
    move = planner.create_change_plan(FORMAT, "move", "Relocate")

    assert any("Create the file" in step for step in add.procedure)
    assert all(i.impact_type != "breaking" for i in add.impacts)
    assert any("Update import paths" in step for step in move.procedure)
    assert any("Move the file back" in step for step in move.rollback_plan)


def test_execute_walks_every_step(planner):
    plan = planner.create_change_plan(PAGE, "modify", "Tweak layout")

    seen = []
    for _ in CHANGE_STEPS:
        seen.append(planner.get_change_plan(plan.id).current_step)
        result = planner.execute_change_plan(plan.id)
        assert result.success

    assert seen == CHANGE_STEPS
    assert result.message == "All steps completed"
    assert result.next_step is None
    assert planner.get_change_plan(plan.id).status == "completed"


def test_first_step_moves_to_in_progress(planner):
    plan = planner.create_change_plan(PAGE, "modify", "Tweak layout")

    result = planner.execute_change_plan(plan.id)

    assert result.next_step == "backup"
    assert plan.status == "in_progress"
    assert plan.current_step == "backup"


def test_completed_plan_is_not_reexecuted(planner):
    plan = planner.create_change_plan(PAGE, "modify", "Tweak layout")
    planner.execute_all(plan.id)

    result = planner.execute_change_plan(plan.id)

    assert not result.success
    assert result.message == "Plan is already completed"
    assert plan.current_step == "cleanup"

    rollback = planner.rollback_change_plan(plan.id)
    assert not rollback.success
    assert plan.status == "completed"


def test_execute_all_stops_on_failure(project_dir, analyzer, plan_store):
    service = FailingMutationService(fail_step="execution")
    planner = ChangePlanner(analyzer=analyzer, store=plan_store, mutation_service=service, root=Path("src"))
    plan = planner.create_change_plan(FORMAT, "modify", "Risky")

    results = planner.execute_all(plan.id)

    assert [r.success for r in results] == [True, True, True, False]
    assert plan.status == "failed"
    assert plan.current_step == "execution"
    assert "disk full" in plan.last_error

    # a failed plan only accepts rollback
    retry = planner.execute_change_plan(plan.id)
    assert not retry.success
    assert plan.current_step == "execution"

    rollback = planner.rollback_change_plan(plan.id)
    assert rollback.success
    assert plan.status == "rolled_back"
    assert service.rollback_actions == plan.rollback_plan


def test_failed_rollback_keeps_status(project_dir, analyzer, plan_store):
    service = FailingMutationService(fail_rollback=True)
    planner = ChangePlanner(analyzer=analyzer, store=plan_store, mutation_service=service, root=Path("src"))
    plan = planner.create_change_plan(PAGE, "modify", "Tweak")
    planner.execute_change_plan(plan.id)

    result = planner.rollback_change_plan(plan.id)

    assert not result.success
    assert plan.status == "in_progress"
    assert "backup missing" in plan.last_error


def test_rollback_pending_plan(planner):
    plan = planner.create_change_plan(PAGE, "modify", "Tweak layout")

    assert planner.rollback_change_plan(plan.id).success
    assert planner.rollback_change_plan(plan.id).message == "Plan is already rolled_back"
    assert not planner.execute_change_plan(plan.id).success


def test_unknown_plan_id(planner):
    assert planner.get_change_plan("plan_missing") is None
    with pytest.raises(PlanNotFound):
        planner.execute_change_plan("plan_missing")
    with pytest.raises(PlanNotFound):
        planner.rollback_change_plan("plan_missing")


def test_concurrent_execution_advances_once_per_call(planner):
    plan = planner.create_change_plan(PAGE, "modify", "Tweak layout")
    results = []

    def worker():
        results.append(planner.execute_change_plan(plan.id))

    threads = [threading.Thread(target=worker) for _ in range(len(CHANGE_STEPS) + 4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sum(1 for r in results if r.success) == len(CHANGE_STEPS)
    assert plan.status == "completed"


def test_list_and_summarize(planner):
    first = planner.create_change_plan(PAGE, "modify", "One")
    planner.create_change_plan(FORMAT, "rename", "Two")
    planner.rollback_change_plan(first.id)

    plans = planner.list_change_plans()
    summary = planner.summarize()

    assert [p.description for p in plans] == ["One", "Two"]
    assert summary["total"] == 2
    assert summary["rolled_back"] == 1
    assert summary["pending"] == 1


def test_validate_change_delegates(planner):
    result = planner.validate_change("src/app.ts", "modify", "await go()")
    assert result.is_valid
    assert result.warnings


def test_many_impacts_counts_every_path():
    record = AnalysisRecord(path="src/app.ts")
    impacts = [
        ImpactRecord(f"src/f{i % 3}.ts", "unknown", "modify change indirectly affects this file", "low")
        for i in range(11)
    ]

    assert identify_risks(record, impacts) == ["Many files affected: run broad tests"]
    assert identify_risks(record, impacts[:10]) == []


def test_delete_change_plan(planner, plan_store):
    plan = planner.create_change_plan(PAGE, "modify", "Tweak layout")

    planner.delete_change_plan(plan.id)

    assert plan.id not in plan_store
    with pytest.raises(PlanNotFound):
        planner.delete_change_plan(plan.id)
