"""
Data models for delivery items.

Items are stored as JSON with snake_case keys; from_dict() tolerates
missing optional fields so older records still load.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Optional

RECORD_VERSION = "1.0.0"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(dt: datetime) -> str:
    """Serialize a datetime as ISO-8601 UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


def parse_iso(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


@dataclass
class DoDEntry:
    """One Definition-of-Done checklist entry."""
    id: str                                    # dod-1
    text: str
    completed: bool = False
    completed_at: Optional[str] = None


@dataclass
class FocusSession:
    """A timed work interval. end/duration stay None while running."""
    start: str
    end: Optional[str] = None
    duration: Optional[int] = None             # minutes
    notes: str = ""

    @property
    def running(self) -> bool:
        return self.end is None


@dataclass
class WorkLogEntry:
    timestamp: str
    action: str
    notes: str = ""


@dataclass
class Scope:
    title: str
    description: str = ""
    outcome: str = ""
    stakeholder: str = ""
    due: str = ""                              # YYYY-MM-DD
    context: str = ""


@dataclass
class Plan:
    objectives: list[str] = field(default_factory=list)
    stakeholders: list[str] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)
    value: str = ""


@dataclass
class TimeBox:
    duration: int = 90                         # minutes
    unit: str = "minutes"
    sessions: list[FocusSession] = field(default_factory=list)


@dataclass
class Constraints:
    time_box: TimeBox = field(default_factory=TimeBox)
    definition_of_done: list[DoDEntry] = field(default_factory=list)
    wip_slot: int = 1


@dataclass
class Review:
    stress_level: int = 3                      # 1-5
    incidents: int = 0
    blockers: list[str] = field(default_factory=list)
    learnings: list[str] = field(default_factory=list)
    next_actions: list[str] = field(default_factory=list)


@dataclass
class Metrics:
    cycle_time: Optional[int] = None           # whole days
    completion_rate: float = 0.0               # 0..1
    actual_time_spent: int = 0                 # minutes
    planned_time_spent: int = 0                # minutes


@dataclass
class Tracking:
    issues: list[int] = field(default_factory=list)
    pull_requests: list[int] = field(default_factory=list)
    last_sync: Optional[str] = None
    work_log: list[WorkLogEntry] = field(default_factory=list)
    review: Review = field(default_factory=Review)
    metrics: Metrics = field(default_factory=Metrics)


@dataclass
class DeliveryItem:
    """A unit of tracked work, bounded by a WIP slot and a DoD checklist."""
    id: str                                    # DI-001
    status: str
    created: str
    updated: str
    scope: Scope
    plan: Plan = field(default_factory=Plan)
    constraints: Constraints = field(default_factory=Constraints)
    tracking: Tracking = field(default_factory=Tracking)
    version: str = RECORD_VERSION

    @property
    def title(self) -> str:
        return self.scope.title

    @property
    def wip_slot(self) -> int:
        return self.constraints.wip_slot

    @property
    def definition_of_done(self) -> list[DoDEntry]:
        return self.constraints.definition_of_done

    @property
    def sessions(self) -> list[FocusSession]:
        return self.constraints.time_box.sessions

    def running_session(self) -> Optional[FocusSession]:
        for session in self.sessions:
            if session.running:
                return session
        return None

    def log(self, action: str, notes: str = "", now: datetime | None = None) -> None:
        """Append a work-log entry."""
        self.tracking.work_log.append(
            WorkLogEntry(timestamp=to_iso(now or utc_now()), action=action, notes=notes)
        )

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "DeliveryItem":
        """Build an item from its stored JSON form.

        Raises:
            KeyError / TypeError: If required fields are missing or malformed
        """
        constraints = data.get("constraints", {})
        time_box = constraints.get("time_box", {})
        tracking = data.get("tracking", {})

        return cls(
            id=data["id"],
            status=data["status"],
            created=data["created"],
            updated=data.get("updated", data["created"]),
            version=data.get("version", RECORD_VERSION),
            scope=Scope(**data["scope"]),
            plan=Plan(**data.get("plan", {})),
            constraints=Constraints(
                time_box=TimeBox(
                    duration=time_box.get("duration", 90),
                    unit=time_box.get("unit", "minutes"),
                    sessions=[FocusSession(**s) for s in time_box.get("sessions", [])],
                ),
                definition_of_done=[DoDEntry(**d) for d in constraints.get("definition_of_done", [])],
                wip_slot=constraints.get("wip_slot", 1),
            ),
            tracking=Tracking(
                issues=list(tracking.get("issues", [])),
                pull_requests=list(tracking.get("pull_requests", [])),
                last_sync=tracking.get("last_sync"),
                work_log=[WorkLogEntry(**w) for w in tracking.get("work_log", [])],
                review=Review(**tracking.get("review", {})),
                metrics=Metrics(**tracking.get("metrics", {})),
            ),
        )


@dataclass
class WipStatus:
    """Result of a WIP-limit check."""
    current: int
    maximum: int
    within_limit: bool

    @property
    def headroom(self) -> int:
        return max(self.maximum - self.current, 0)
