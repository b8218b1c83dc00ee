"""
Shared output helpers for commands.

Human output goes to stdout as plain text; --json emits one JSON document.
"""

import json
from dataclasses import asdict, is_dataclass
from typing import Any

from safer.lib.items import dod_progress
from safer.lib.models import DeliveryItem


def print_json(data: Any) -> None:
    if is_dataclass(data) and not isinstance(data, type):
        data = asdict(data)
    print(json.dumps(data, indent=2, default=str))


def truncate(text: str, width: int) -> str:
    return text[:width - 3] + "..." if len(text) > width else text


def item_row(item: DeliveryItem) -> dict:
    """Compact listing form of an item."""
    done, total = dod_progress(item)
    return {
        "id": item.id,
        "title": item.title,
        "status": item.status,
        "wip_slot": item.wip_slot,
        "due": item.scope.due,
        "dod_completed": done,
        "dod_total": total,
        "updated": item.updated,
    }


def format_item_line(item: DeliveryItem, show_slot: bool = True) -> str:
    done, total = dod_progress(item)
    slot = f"[{item.wip_slot}] " if show_slot else ""
    return (
        f"  {slot}{item.id:<8} {item.status:<10} "
        f"{truncate(item.title, 40):<40} DoD {done}/{total}"
    )
