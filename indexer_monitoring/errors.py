"""Exception types shared across the monitoring service."""


class MonitoringError(Exception):
    """Base class for errors raised by the monitoring service."""


class ConfigError(MonitoringError):
    """Configuration file is unreadable or holds invalid values."""


class PersistenceError(MonitoringError):
    """A report, log or checkpoint file could not be written."""
