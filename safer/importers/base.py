"""
Importer capability and shared import flow.

An importer only has to fetch candidates and report whether it is
configured; run_import() owns duplicate detection, WIP headroom, id and
slot allocation, and the batch commit.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol, runtime_checkable

from safer.lib.config import SaferConfig
from safer.lib.errors import ImporterNotConfigured, SaferError, WipLimitExceeded
from safer.lib.items import add_dod, default_due_date
from safer.lib.models import (
    Constraints,
    DeliveryItem,
    Metrics,
    Plan,
    Review,
    Scope,
    TimeBox,
    Tracking,
    to_iso,
    utc_now,
)
from safer.lib.recorder import Recorder, commit_quietly
from safer.lib.repository import ItemRepository

logger = logging.getLogger(__name__)

STANDARD_DOD = [
    "Implementation complete",
    "Code reviewed",
    "Tests written and passing",
]

PLATFORM_DOD = {
    "github": "GitHub issue/PR closed",
}

HIGH_PRIORITIES = ("critical", "urgent", "high")

ALREADY_IMPORTED = "All available issues have already been imported"


@dataclass
class ImportSource:
    platform: str
    id: int | str
    url: str = ""


@dataclass
class ImportMetadata:
    assignee: str = ""
    labels: list[str] = field(default_factory=list)
    due_date: str = ""
    priority: str = ""
    status: str = ""


@dataclass
class ImportedItem:
    """A candidate fetched from an external tracker."""
    title: str
    description: str
    source: ImportSource
    metadata: ImportMetadata = field(default_factory=ImportMetadata)


@dataclass
class ImportOptions:
    assigned_to_me: bool = False
    label: str | None = None
    state: str = "open"                        # open, closed, all
    limit: int = 10


@dataclass
class ImportResult:
    success: bool = False
    imported: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    items: list[DeliveryItem] = field(default_factory=list)


@runtime_checkable
class Importer(Protocol):
    platform: str

    def fetch_items(self, options: ImportOptions) -> list[ImportedItem]: ...

    def is_configured(self) -> bool: ...


def _objectives(imported: ImportedItem) -> list[str]:
    objectives = []
    if imported.metadata.priority:
        objectives.append(f"Priority: {imported.metadata.priority}")
    objectives.extend(f"Label: {label}" for label in imported.metadata.labels)
    return objectives or ["Complete assigned work"]


def estimate_stress(priority: str) -> int:
    priority = (priority or "").lower()
    if priority in HIGH_PRIORITIES:
        return 4
    if priority == "medium":
        return 3
    return 2


def convert_to_delivery_item(
    imported: ImportedItem,
    wip_slot: int,
    item_id: str,
    config: SaferConfig,
    now: datetime | None = None,
) -> DeliveryItem:
    """Map an external candidate onto a new active DeliveryItem."""
    now = now or utc_now()
    stamp = to_iso(now)
    platform = imported.source.platform
    source_id = imported.source.id
    assignee = imported.metadata.assignee
    time_box = config.limits.default_time_box

    item = DeliveryItem(
        id=item_id,
        status="active",
        created=stamp,
        updated=stamp,
        scope=Scope(
            title=imported.title,
            description=imported.description,
            outcome=f"Complete: {imported.title}",
            stakeholder=assignee or "Team",
            due=imported.metadata.due_date or default_due_date(now),
            context=f"Imported from {platform}",
        ),
        plan=Plan(
            objectives=_objectives(imported),
            stakeholders=[assignee] if assignee else [],
            value=f"Addresses {platform} {source_id}",
        ),
        constraints=Constraints(
            time_box=TimeBox(duration=time_box),
            wip_slot=wip_slot,
        ),
        tracking=Tracking(
            review=Review(
                stress_level=estimate_stress(imported.metadata.priority),
                next_actions=[f"Review {platform} {source_id} for details"],
            ),
            metrics=Metrics(planned_time_spent=time_box),
        ),
    )

    for text in STANDARD_DOD:
        add_dod(item, text)
    if platform in PLATFORM_DOD:
        add_dod(item, PLATFORM_DOD[platform])

    if platform == "github":
        item.tracking.issues.append(int(source_id))
        item.tracking.last_sync = stamp

    item.log(f"Imported from {platform}", notes=f"Source: {imported.source.url}", now=now)
    return item


def _source_number(imported: ImportedItem) -> int | None:
    try:
        return int(imported.source.id)
    except (TypeError, ValueError):
        return None


def run_import(
    importer: Importer,
    repo: ItemRepository,
    recorder: Recorder,
    options: ImportOptions | None = None,
    now: datetime | None = None,
) -> ImportResult:
    """Fetch candidates and create delivery items for the new ones.

    Raises:
        ImporterNotConfigured: Before any I/O if the importer is not ready
        GitHubError (or other SaferError): If fetching fails
    """
    options = options or ImportOptions()
    if not importer.is_configured():
        raise ImporterNotConfigured(f"{importer.platform} importer is not configured")

    result = ImportResult()
    candidates = importer.fetch_items(options)
    logger.info(f"Fetched {len(candidates)} candidate(s) from {importer.platform}")

    with repo.mutation():
        already = repo.imported_issue_numbers()
        fresh = []
        for candidate in candidates:
            if _source_number(candidate) in already:
                result.skipped += 1
            else:
                fresh.append(candidate)

        if not fresh:
            result.success = True
            if candidates:
                result.warnings.append(ALREADY_IMPORTED)
            return result

        wip = repo.check_wip_limit()
        slots = repo.free_wip_slots()
        headroom = min(wip.headroom, len(slots))
        if headroom == 0:
            result.errors.append(str(WipLimitExceeded(wip.current, wip.maximum)))
            result.skipped += len(fresh)
            return result

        batch = fresh[:headroom]
        overflow = len(fresh) - len(batch)
        if overflow:
            result.warnings.append(
                f"Only importing {len(batch)} of {len(fresh)} item(s) due to WIP limit "
                f"({wip.current}/{wip.maximum})"
            )
            result.skipped += overflow

        reserved: list[str] = []
        for candidate, slot in zip(batch, slots):
            try:
                item_id = repo.next_id(reserved=reserved)
                reserved.append(item_id)
                item = convert_to_delivery_item(candidate, slot, item_id, repo.config, now)
                repo.create(item)
            except (SaferError, ValueError) as e:
                result.errors.append(f"Failed to import {candidate.title}: {e}")
                result.skipped += 1
                continue
            result.items.append(item)
            result.imported += 1

        if result.imported:
            commit_quietly(
                recorder,
                f"Imported {result.imported} item(s) from {importer.platform}",
            )

    result.success = result.imported > 0
    return result
