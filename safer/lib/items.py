"""
Delivery-item operations.

Pure functions mutate a DeliveryItem in place; the caller saves it through
the repository and records a commit. create_item() and purge_all() do the
whole sequence themselves.
"""

import logging
import math
import shutil
from datetime import datetime, timedelta
from typing import Iterable, Optional

from .config import SaferConfig
from .context import SaferContext
from .errors import NotFound, SessionError, StorageError
from .fsm import transition
from .models import (
    Constraints,
    DeliveryItem,
    DoDEntry,
    FocusSession,
    Metrics,
    Plan,
    Review,
    Scope,
    TimeBox,
    Tracking,
    parse_iso,
    to_iso,
    utc_now,
)
from .recorder import Recorder, commit_quietly
from .repository import ItemRepository

logger = logging.getLogger(__name__)

DEFAULT_DUE_DAYS = 7
DEFAULT_STRESS = 3


def default_due_date(now: datetime, days: int = DEFAULT_DUE_DAYS) -> str:
    return (now + timedelta(days=days)).date().isoformat()


def build_item(
    item_id: str,
    title: str,
    wip_slot: int,
    config: SaferConfig,
    now: datetime | None = None,
    description: str = "",
    outcome: str = "",
    stakeholder: str = "",
    due: str | None = None,
    context: str = "",
    objectives: Optional[list[str]] = None,
    dod: Optional[list[str]] = None,
) -> DeliveryItem:
    """Assemble a new active item with defaults filled in."""
    now = now or utc_now()
    stamp = to_iso(now)
    time_box = config.limits.default_time_box

    item = DeliveryItem(
        id=item_id,
        status="active",
        created=stamp,
        updated=stamp,
        scope=Scope(
            title=title,
            description=description,
            outcome=outcome,
            stakeholder=stakeholder or config.user.name,
            due=due or default_due_date(now),
            context=context,
        ),
        plan=Plan(objectives=list(objectives or [])),
        constraints=Constraints(
            time_box=TimeBox(duration=time_box),
            wip_slot=wip_slot,
        ),
        tracking=Tracking(
            review=Review(stress_level=DEFAULT_STRESS),
            metrics=Metrics(planned_time_spent=time_box),
        ),
    )
    for text in dod or []:
        add_dod(item, text)
    item.log("Created", now=now)
    return item


def create_item(
    repo: ItemRepository,
    recorder: Recorder,
    title: str,
    **fields,
) -> DeliveryItem:
    """Allocate an id and slot, write the item and commit.

    Raises:
        WipLimitExceeded: If every WIP slot is taken
    """
    with repo.mutation():
        item = build_item(repo.next_id(), title, repo.next_wip_slot(), repo.config, **fields)
        repo.create(item)
        commit_quietly(recorder, f"Created {item.id}: {title}")
    return item


# --- Definition of Done ---

def add_dod(item: DeliveryItem, text: str) -> DoDEntry:
    numbers = [
        int(d.id.split("-", 1)[1])
        for d in item.definition_of_done
        if d.id.startswith("dod-") and d.id[4:].isdigit()
    ]
    entry = DoDEntry(id=f"dod-{max(numbers, default=0) + 1}", text=text)
    item.definition_of_done.append(entry)
    return entry


def _find_dod(item: DeliveryItem, dod_id: str) -> DoDEntry:
    for entry in item.definition_of_done:
        if entry.id == dod_id:
            return entry
    raise NotFound(f"{dod_id} on {item.id}", "DoD entry")


def check_dod(item: DeliveryItem, dod_id: str, now: datetime | None = None) -> DoDEntry:
    entry = _find_dod(item, dod_id)
    entry.completed = True
    entry.completed_at = to_iso(now or utc_now())
    return entry


def uncheck_dod(item: DeliveryItem, dod_id: str) -> DoDEntry:
    entry = _find_dod(item, dod_id)
    entry.completed = False
    entry.completed_at = None
    return entry


def dod_progress(item: DeliveryItem) -> tuple[int, int]:
    """(completed, total) DoD entries."""
    done = sum(1 for d in item.definition_of_done if d.completed)
    return done, len(item.definition_of_done)


def dod_complete(item: DeliveryItem) -> bool:
    done, total = dod_progress(item)
    return done == total


# --- lifecycle ---

def complete_item(
    item: DeliveryItem,
    stress: int | None = None,
    learnings: str | None = None,
    incidents: int | None = None,
    now: datetime | None = None,
) -> DeliveryItem:
    """Mark an item completed and compute its cycle metrics.

    Raises:
        ValueError: If stress is outside 1-5
        InvalidTransition: If the item cannot be completed from its status
    """
    if stress is not None and not 1 <= stress <= 5:
        raise ValueError(f"Stress level must be between 1 and 5, got {stress}")

    now = now or utc_now()
    transition(item, "complete")

    elapsed = (now - parse_iso(item.created)).total_seconds()
    done, total = dod_progress(item)

    item.tracking.metrics.cycle_time = max(math.ceil(elapsed / 86400), 0)
    item.tracking.metrics.completion_rate = done / max(total, 1)

    review = item.tracking.review
    if stress is not None:
        review.stress_level = stress
    if incidents is not None:
        review.incidents = incidents
    if learnings:
        review.learnings.append(learnings)

    item.log("Completed", now=now)
    return item


def set_blocked(item: DeliveryItem, blocked: bool, reason: str = "") -> DeliveryItem:
    if blocked:
        transition(item, "block")
        if reason:
            item.tracking.review.blockers.append(reason)
        item.log("Blocked", notes=reason)
    else:
        transition(item, "unblock")
        item.log("Unblocked", notes=reason)
    return item


def reopen_item(item: DeliveryItem, reason: str = "") -> DeliveryItem:
    """Return a completed (not yet archived) item to active work.

    Completion metrics are kept; completing again recomputes them.
    """
    transition(item, "reopen")
    item.log("Reopened", notes=reason)
    return item


# --- focus sessions ---

def start_session(item: DeliveryItem, now: datetime | None = None) -> FocusSession:
    """Open a focus session on an item.

    Raises:
        SessionError: If the item already has a running session
    """
    if item.running_session():
        raise SessionError(f"{item.id} already has a running session. Stop it first with: safer stop")

    now = now or utc_now()
    session = FocusSession(start=to_iso(now))
    item.sessions.append(session)
    item.log("Started focus session", now=now)
    return session


def find_running_session(items: Iterable[DeliveryItem]) -> tuple[DeliveryItem, FocusSession] | None:
    for item in items:
        session = item.running_session()
        if session:
            return item, session
    return None


def stop_session(
    items: Iterable[DeliveryItem],
    notes: str = "",
    now: datetime | None = None,
) -> tuple[DeliveryItem, FocusSession]:
    """Close the running session on the first item that has one.

    Raises:
        SessionError: If no session is running
    """
    found = find_running_session(items)
    if not found:
        raise SessionError("No active focus session found")

    item, session = found
    now = now or utc_now()
    minutes = round((now - parse_iso(session.start)).total_seconds() / 60)

    session.end = to_iso(now)
    session.duration = max(minutes, 0)
    session.notes = notes
    item.tracking.metrics.actual_time_spent += session.duration
    item.log("Stopped focus session", notes=f"{session.duration} minutes", now=now)
    return item, session


# --- links ---

def link_issue(item: DeliveryItem, number: int) -> bool:
    """Record an external issue number. Returns False if already linked."""
    if number in item.tracking.issues:
        return False
    item.tracking.issues.append(number)
    item.tracking.last_sync = to_iso(utc_now())
    return True


def link_pull_request(item: DeliveryItem, number: int) -> bool:
    if number in item.tracking.pull_requests:
        return False
    item.tracking.pull_requests.append(number)
    item.tracking.last_sync = to_iso(utc_now())
    return True


# --- purge ---

def purge_all(ctx: SaferContext) -> list[str]:
    """Delete every item, review and metrics file; keep configuration.

    Returns the data directories that were cleared.
    """
    cleared = []
    for directory in (ctx.active_dir, ctx.archive_dir, ctx.reviews_dir, ctx.metrics_dir):
        if not directory.exists():
            continue
        try:
            shutil.rmtree(directory)
            directory.mkdir(parents=True)
        except OSError as e:
            raise StorageError(f"Cannot clear {directory}: {e}") from None
        cleared.append(str(directory.relative_to(ctx.root)))
    logger.info(f"Purged {', '.join(cleared) or 'nothing'}")
    return cleared
