"""Scheduler module for the periodic monitoring run."""

from .job_scheduler import JobScheduler
from .monitor_scheduler import MonitoringScheduler

__all__ = ["JobScheduler", "MonitoringScheduler"]
