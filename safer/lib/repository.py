"""
File-backed item repository.

Active items live in data/active/<id>.json; archived items in
data/archive/<YYYY>/<MM>/<id>.json. Every record in the active store
holds one WIP slot until it is archived or deleted.
"""

import json
import logging
import os
import re
import tempfile
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterable, Iterator, Optional

from .config import SaferConfig
from .context import SaferContext
from .errors import NotFound, StorageError, WipLimitExceeded
from .fsm import transition
from .locking import DEFAULT_TIMEOUT, root_lock
from .models import DeliveryItem, WipStatus, parse_iso, to_iso, utc_now
from .validate import ValidationError, validate, validate_before_write

logger = logging.getLogger(__name__)

ID_PATTERN = re.compile(r"^DI-(\d+)$")


def format_id(number: int) -> str:
    return f"DI-{number:03d}"


def atomic_write_json(path: Path, data: dict) -> None:
    """Write JSON via a temp file in the same directory and os.replace."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w") as f:
            f.write(json.dumps(data, indent=2) + "\n")
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


class ItemRepository:
    """Active/archive item storage for one data root."""

    def __init__(self, ctx: SaferContext, config: SaferConfig):
        self.ctx = ctx
        self.config = config

    @property
    def max_wip(self) -> int:
        return self.config.limits.max_wip

    # --- paths ---

    def _active_path(self, item_id: str) -> Path:
        return self.ctx.active_dir / f"{item_id}.json"

    def _archive_path(self, item_id: str, when: datetime) -> Path:
        return self.ctx.archive_dir / f"{when.year:04d}" / f"{when.month:02d}" / f"{item_id}.json"

    def _active_files(self) -> list[Path]:
        if not self.ctx.active_dir.exists():
            return []
        return sorted(self.ctx.active_dir.glob("*.json"))

    def _archived_files(self) -> list[Path]:
        if not self.ctx.archive_dir.exists():
            return []
        return sorted(self.ctx.archive_dir.glob("*/*/*.json"))

    def _find_archived(self, item_id: str) -> Optional[Path]:
        if not self.ctx.archive_dir.exists():
            return None
        matches = sorted(self.ctx.archive_dir.glob(f"*/*/{item_id}.json"))
        return matches[-1] if matches else None

    # --- read/write ---

    def _read(self, path: Path) -> DeliveryItem:
        try:
            data = json.loads(path.read_text())
            validate(data, "item")
            return DeliveryItem.from_dict(data)
        except (OSError, json.JSONDecodeError, KeyError, TypeError, ValidationError) as e:
            raise StorageError(f"Cannot read {path}: {e}") from None

    def _load_all(self, paths: Iterable[Path]) -> list[DeliveryItem]:
        items = []
        for path in paths:
            try:
                items.append(self._read(path))
            except StorageError as e:
                logger.warning(f"Skipping unreadable item file: {e}")
        return items

    def _write(self, item: DeliveryItem, path: Path) -> None:
        data = item.to_dict()
        try:
            validate_before_write(data, "item", path)
            atomic_write_json(path, data)
        except ValidationError as e:
            raise StorageError(str(e)) from None
        except OSError as e:
            raise StorageError(f"Cannot write {path}: {e}") from None

    # --- queries ---

    def list_active(self) -> list[DeliveryItem]:
        """Active-store items ordered by WIP slot."""
        items = self._load_all(self._active_files())
        return sorted(items, key=lambda i: (i.wip_slot, i.id))

    def list_archived(self) -> list[DeliveryItem]:
        """All archived items, most recently updated first."""
        items = self._load_all(self._archived_files())
        return sorted(items, key=lambda i: parse_iso(i.updated), reverse=True)

    def get(self, item_id: str) -> DeliveryItem:
        """Look up an item in the active store, then the archive.

        Raises:
            NotFound: If no record has this id
        """
        active = self._active_path(item_id)
        if active.exists():
            return self._read(active)
        archived = self._find_archived(item_id)
        if archived:
            return self._read(archived)
        raise NotFound(item_id)

    def is_active(self, item_id: str) -> bool:
        return self._active_path(item_id).exists()

    def _known_ids(self) -> list[str]:
        return [p.stem for p in self._active_files()] + [p.stem for p in self._archived_files()]

    def _last_issued(self) -> int:
        """Highest id number ever created, from data/id-counter.json."""
        path = self.ctx.id_counter_file
        if not path.exists():
            return 0
        try:
            return int(json.loads(path.read_text())["last_id"])
        except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring unreadable id counter {path}: {e}")
            return 0

    def _record_issued(self, item_id: str) -> None:
        match = ID_PATTERN.match(item_id)
        if not match or int(match.group(1)) <= self._last_issued():
            return
        try:
            atomic_write_json(self.ctx.id_counter_file, {"last_id": int(match.group(1))})
        except OSError as e:
            raise StorageError(f"Cannot write {self.ctx.id_counter_file}: {e}") from None

    def next_id(self, reserved: Iterable[str] = ()) -> str:
        """Next DI-### id above every id ever issued, stored or reserved.

        Deleted items keep their numbers retired via the id counter.
        """
        highest = self._last_issued()
        for item_id in [*self._known_ids(), *reserved]:
            match = ID_PATTERN.match(item_id)
            if match:
                highest = max(highest, int(match.group(1)))
            else:
                logger.warning(f"Malformed item ID ignored: {item_id}")
        return format_id(highest + 1)

    def _used_slots(self) -> set[int]:
        return {item.wip_slot for item in self.list_active()}

    def free_wip_slots(self) -> list[int]:
        used = self._used_slots()
        return [slot for slot in range(1, self.max_wip + 1) if slot not in used]

    def next_wip_slot(self) -> int:
        """Lowest free slot, or 1 when every slot is taken."""
        free = self.free_wip_slots()
        return free[0] if free else 1

    def check_wip_limit(self) -> WipStatus:
        current = len(self._active_files())
        return WipStatus(current=current, maximum=self.max_wip, within_limit=current < self.max_wip)

    def imported_issue_numbers(self) -> set[int]:
        """Issue numbers linked from any active or archived item."""
        numbers: set[int] = set()
        for item in [*self.list_active(), *self.list_archived()]:
            numbers.update(item.tracking.issues)
        return numbers

    # --- mutations ---

    def create(self, item: DeliveryItem) -> DeliveryItem:
        """Write a new active record.

        A slot that is out of range or already held is replaced by the
        lowest free one.

        Raises:
            WipLimitExceeded: If the active store is already full
            StorageError: If the id exists or the write fails
        """
        if self.is_active(item.id) or self._find_archived(item.id):
            raise StorageError(f"Item {item.id} already exists")

        status = self.check_wip_limit()
        if not status.within_limit:
            raise WipLimitExceeded(status.current, status.maximum)

        slot = item.constraints.wip_slot
        if slot not in self.free_wip_slots():
            replacement = self.next_wip_slot()
            logger.warning(f"WIP slot {slot} unavailable for {item.id}, using slot {replacement}")
            item.constraints.wip_slot = replacement

        item.updated = to_iso(utc_now())
        self._write(item, self._active_path(item.id))
        self._record_issued(item.id)
        logger.info(f"Created {item.id} in slot {item.wip_slot}")
        return item

    def save(self, item: DeliveryItem) -> DeliveryItem:
        """Overwrite an active record, refreshing its updated timestamp.

        Raises:
            NotFound: If the item is not in the active store
        """
        path = self._active_path(item.id)
        if not path.exists():
            raise NotFound(item.id, "Active item")
        item.updated = to_iso(utc_now())
        self._write(item, path)
        return item

    def archive(self, item: DeliveryItem, now: datetime | None = None) -> Path:
        """Move an item to archive/<YYYY>/<MM>/, freeing its slot.

        The archived copy is written before the active record is removed;
        reconcile() cleans up if the process dies in between.
        """
        now = now or utc_now()
        if item.status != "archived":
            transition(item, "archive")
        item.updated = to_iso(now)

        path = self._archive_path(item.id, now)
        self._write(item, path)

        active = self._active_path(item.id)
        try:
            active.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot remove {active}: {e}") from None

        logger.info(f"Archived {item.id} to {path.relative_to(self.ctx.root)}")
        return path

    def delete(self, item_id: str) -> bool:
        """Remove an active record. Returns False if it did not exist."""
        path = self._active_path(item_id)
        if not path.exists():
            return False
        try:
            path.unlink()
        except OSError as e:
            raise StorageError(f"Cannot delete {path}: {e}") from None
        logger.info(f"Deleted {item_id}")
        return True

    def reconcile(self) -> list[str]:
        """Remove active records that already have an archived copy."""
        removed = []
        archived_ids = {p.stem for p in self._archived_files()}
        for path in self._active_files():
            if path.stem in archived_ids:
                logger.warning(f"{path.stem} found in both stores, removing active copy")
                path.unlink(missing_ok=True)
                removed.append(path.stem)
        return removed

    @contextmanager
    def mutation(self, timeout: float = DEFAULT_TIMEOUT) -> Iterator["ItemRepository"]:
        """Hold the root lock for a read-modify-write sequence."""
        with root_lock(self.ctx, timeout):
            self.reconcile()
            yield self
