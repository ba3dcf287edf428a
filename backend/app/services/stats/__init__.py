"""Church aggregate consistency engine (recompute, roster replace, coordinator)."""
from app.services.stats.coordinator import (  # noqa: F401
    MutationResult,
    Stage,
    read_church_stats,
    refresh_church_stats,
    run_mutation,
)
from app.services.stats.errors import (  # noqa: F401
    ConcurrencyConflictError,
    CrossTenantReferenceError,
    DuplicateAttendeeError,
    DuplicateWeekError,
    NotFoundError,
    StatsError,
    StorageTimeoutError,
    ValidationError,
)
from app.services.stats.recompute import AggregateSnapshot, StatsPolicy, recompute_church_stats  # noqa: F401
from app.services.stats.roster import AttendeeEntry, RosterResult, replace_roster  # noqa: F401
