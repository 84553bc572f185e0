"""Domain models for the sheet -> issue sync tool."""

from .config_models import DEFAULT_TRUTHY_VALUES, OutOfRangePolicy, SyncConfig
from .error_record import ErrorRecord
from .range_origin import RangeOrigin
from .row_outcome import RowOutcome, RowStatus
from .run_report import MAX_REPORTED_URLS, RunCounters, RunReport

__all__ = [
    # Configuration models
    "DEFAULT_TRUTHY_VALUES",
    "OutOfRangePolicy",
    "SyncConfig",
    # Processing models
    "RangeOrigin",
    "RowOutcome",
    "RowStatus",
    "RunCounters",
    "RunReport",
    "MAX_REPORTED_URLS",
    "ErrorRecord",
]
