"""Change plan registries.

:class:`PlanStore` keeps plans in memory for the lifetime of the object;
:class:`JsonPlanStore` additionally writes each plan to
``<plans_dir>/<plan_id>.json`` so the CLI can create a plan in one
process and execute it in the next.

Each plan id owns its own lock.  Callers hold :meth:`PlanStore.locked`
for the whole read-modify-write of a transition; distinct ids never
contend.
"""

from __future__ import annotations

import contextlib
import json
import logging
import re
import threading
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from . import config
from .models import ChangePlan

logger = logging.getLogger(__name__)

PLAN_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def is_valid_plan_id(plan_id: str) -> bool:
    """Plan ids become file names: word characters and dashes only."""
    return bool(PLAN_ID_RE.match(plan_id))


class PlanStore:
    """In-memory registry of change plans keyed by id."""

    def __init__(self) -> None:
        self._plans: Dict[str, ChangePlan] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def __len__(self) -> int:
        return len(self.ids())

    def __contains__(self, plan_id: str) -> bool:
        return self.get(plan_id) is not None

    @contextlib.contextmanager
    def locked(self, plan_id: str) -> Iterator[None]:
        with self._locks_guard:
            lock = self._locks.setdefault(plan_id, threading.Lock())
        with lock:
            yield

    def register(self, plan: ChangePlan) -> None:
        self._plans[plan.id] = plan
        self.save(plan)

    def save(self, plan: ChangePlan) -> None:
        """Persist *plan* after a transition (no-op for the in-memory store)."""

    def get(self, plan_id: str) -> Optional[ChangePlan]:
        return self._plans.get(plan_id)

    def delete(self, plan_id: str) -> bool:
        return self._plans.pop(plan_id, None) is not None

    def ids(self) -> List[str]:
        return list(self._plans)

    def list(self) -> List[ChangePlan]:
        plans = [self.get(plan_id) for plan_id in self.ids()]
        return sorted((p for p in plans if p is not None), key=lambda p: p.created_at)


class JsonPlanStore(PlanStore):
    """Plan store backed by one JSON file per plan."""

    def __init__(self, plans_dir: Optional[Path] = None) -> None:
        super().__init__()
        self.plans_dir = plans_dir or config.PLANS_DIR
        self.plans_dir.mkdir(parents=True, exist_ok=True)

    def _plan_file(self, plan_id: str) -> Path:
        if not is_valid_plan_id(plan_id):
            raise ValueError(f"Invalid plan id: {plan_id!r}")
        return self.plans_dir / f"{plan_id}.json"

    def save(self, plan: ChangePlan) -> None:
        self._plans[plan.id] = plan
        self._plan_file(plan.id).write_text(
            json.dumps(plan.to_dict(), indent=2, ensure_ascii=False),
            encoding="utf-8",
        )

    def get(self, plan_id: str) -> Optional[ChangePlan]:
        if not is_valid_plan_id(plan_id):
            return None
        path = self._plan_file(plan_id)
        if not path.exists():
            return None
        try:
            plan = ChangePlan.from_dict(json.loads(path.read_text(encoding="utf-8")))
        except (json.JSONDecodeError, KeyError, TypeError, AttributeError) as exc:
            logger.warning("Corrupt plan file %s: %s", path, exc)
            return None
        self._plans[plan_id] = plan
        return plan

    def ids(self) -> List[str]:
        if not self.plans_dir.exists():
            return []
        return sorted(p.stem for p in self.plans_dir.glob("*.json"))

    def delete(self, plan_id: str) -> bool:
        if not is_valid_plan_id(plan_id):
            return False
        path = self._plan_file(plan_id)
        if not path.exists():
            return False
        path.unlink()
        self._plans.pop(plan_id, None)
        return True
