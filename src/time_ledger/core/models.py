"""Core data models for time tracking."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional
from uuid import uuid4


@dataclass(frozen=True)
class TimeInterval:
    """One contiguous span of work within a calendar day.

    Attributes:
        start_time: Start of the span as ``HH:mm``
        end_time: End of the span as ``HH:mm``. An end before the start
            means the span runs past midnight.
    """

    start_time: str
    end_time: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        return {"start_time": self.start_time, "end_time": self.end_time}


@dataclass
class TimeEntry:
    """Logged work against a project on a single day.

    Attributes:
        id: Unique identifier
        date: Day the work belongs to
        project_id: Project the work is logged against
        description: What was worked on
        hours: Exact hours. Derived from time_intervals when those are
            present, otherwise entered manually.
        billable: Whether the work is billable
        hourly_rate: Entry-specific rate (optional, informational)
        time_intervals: Work spans backing the hours (optional)
        created_at: When this record was created
        updated_at: Last update time
    """

    date: date
    project_id: str
    hours: float
    description: str = ""
    billable: bool = True
    hourly_rate: Optional[float] = None
    time_intervals: list[TimeInterval] = field(default_factory=list)
    id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    @property
    def has_intervals(self) -> bool:
        """Check if hours are derived from time intervals."""
        return bool(self.time_intervals)

    @property
    def first_start_time(self) -> Optional[str]:
        """Start time of the first interval, used for ordering a day's entries."""
        if not self.time_intervals:
            return None
        return self.time_intervals[0].start_time

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for CSV serialization."""
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "project_id": self.project_id,
            "description": self.description,
            "hours": repr(self.hours),
            "billable": self.billable,
            "hourly_rate": repr(self.hourly_rate) if self.hourly_rate is not None else "",
            "time_intervals": ",".join(
                f"{i.start_time}-{i.end_time}" for i in self.time_intervals
            ),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    def to_json_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = self.to_dict()
        data["hours"] = self.hours
        data["hourly_rate"] = self.hourly_rate
        data["time_intervals"] = [i.to_dict() for i in self.time_intervals]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TimeEntry":
        """Create TimeEntry from a CSV row or JSON object.

        Interval times are normalized to ``HH:mm`` and hours are recomputed
        from them, so a record cannot carry intervals the aggregation can't
        read or hours that disagree with its intervals.

        Raises:
            ValueError: If an interval is not a valid ``HH:mm-HH:mm`` span
        """
        # Imported here, intervals imports this module
        from time_ledger.core.intervals import hours_from_intervals, parse_time_string

        raw_intervals = data.get("time_intervals") or []
        if isinstance(raw_intervals, str):
            pairs = [chunk.split("-") for chunk in raw_intervals.split(",") if chunk.strip()]
        else:
            pairs = [[i["start_time"], i["end_time"]] for i in raw_intervals]

        intervals = []
        for pair in pairs:
            times = [parse_time_string(str(t).strip()) for t in pair]
            if len(times) != 2 or None in times:
                text = "-".join(str(t) for t in pair)
                raise ValueError(f"Invalid time interval: {text!r}")
            intervals.append(TimeInterval(times[0], times[1]))

        hours = hours_from_intervals(intervals) if intervals else float(data["hours"])
        rate = data.get("hourly_rate")
        return cls(
            id=data["id"],
            date=date.fromisoformat(data["date"]),
            project_id=data["project_id"],
            description=data.get("description") or "",
            hours=hours,
            billable=_to_bool(data.get("billable", True)),
            hourly_rate=float(rate) if rate not in (None, "") else None,
            time_intervals=intervals,
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
        )


@dataclass
class Project:
    """Project definition for organizing time entries.

    Attributes:
        id: Project identifier
        name: Display name
        color: Display color (hex)
        client: Client name (optional)
        default_hourly_rate: Billing rate used for invoicing (optional)
        active: Whether project is active
        created_at: Creation timestamp
    """

    id: str
    name: str
    color: str = "#6b7280"
    client: Optional[str] = None
    default_hourly_rate: Optional[float] = None
    active: bool = True
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for CSV/JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "client": self.client or "",
            "default_hourly_rate": (
                repr(self.default_hourly_rate) if self.default_hourly_rate is not None else ""
            ),
            "active": self.active,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Project":
        """Create Project from dictionary (CSV/JSON deserialization)."""
        rate = data.get("default_hourly_rate")
        return cls(
            id=data["id"],
            name=data["name"],
            color=data.get("color") or "#6b7280",
            client=data["client"] if data.get("client") else None,
            default_hourly_rate=float(rate) if rate not in (None, "") else None,
            active=_to_bool(data.get("active", True)),
            created_at=datetime.fromisoformat(data["created_at"]),
        )


@dataclass
class ActiveTimer:
    """The single in-progress work interval.

    Attributes:
        project_id: Project the running work belongs to
        start_time: When the timer was started
        description: What is being worked on
        warning_shown: Whether the long-running warning has been raised
    """

    project_id: str
    start_time: datetime = field(default_factory=datetime.now)
    description: str = ""
    warning_shown: bool = False

    def elapsed_seconds(self, now: Optional[datetime] = None) -> int:
        """Seconds since the timer was started."""
        now = now or datetime.now()
        return max(0, int((now - self.start_time).total_seconds()))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "project_id": self.project_id,
            "start_time": self.start_time.isoformat(),
            "description": self.description,
            "warning_shown": self.warning_shown,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ActiveTimer":
        """Create ActiveTimer from dictionary."""
        return cls(
            project_id=data["project_id"],
            start_time=datetime.fromisoformat(data["start_time"]),
            description=data.get("description") or "",
            warning_shown=bool(data.get("warning_shown", False)),
        )


def _to_bool(value: Any) -> bool:
    # CSV round-trips booleans as "True"/"False"
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)
