from .scheduler import (
    RefreshScheduler, SchedulerState, start_cron_jobs, stop_cron_jobs,
)
from .tasks import RefreshTasks

__all__ = [
    "RefreshScheduler", "SchedulerState", "RefreshTasks",
    "start_cron_jobs", "stop_cron_jobs",
]
