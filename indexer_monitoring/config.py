"""Configuration management for the indexer monitoring service."""

import os
from pathlib import Path
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .errors import ConfigError


class ScheduleConfig(BaseModel):
    """Cadence and lifetime of the monitoring scheduler."""
    cron: str = Field(default="0 7 * * *", description="Five-field cron expression")
    timezone: str = Field(default="Asia/Shanghai", description="Timezone for cron and timestamps")
    monitor_days: int = Field(default=10, ge=0, description="Monitoring lifetime in days (0 = unbounded)")

    @field_validator("cron")
    @classmethod
    def _five_fields(cls, value: str) -> str:
        if len(value.split()) != 5:
            raise ValueError(f"Invalid cron expression: {value}")
        return value

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value


class ChainConfig(BaseModel):
    """Endpoints for the live chain and the indexer."""
    rpc_url: str = Field(default="https://rpc.ankr.com/eth", description="JSON-RPC endpoint of the chain")
    graphql_endpoint: str = Field(
        default="http://localhost:8000/subgraphs/name/uniswap-v2-monitor",
        description="GraphQL endpoint of the indexer"
    )
    start_block: int = Field(default=10000835, description="Origin height progress is measured from")


class DatabaseConfig(BaseModel):
    """Postgres container backing the indexer."""
    container: str = Field(default="uniswap-v2-monitor-subgraph_postgres_1")
    user: str = Field(default="graph-node")
    database: str = Field(default="graph-node")
    chain_schema: str = Field(default="chain1", description="Schema holding the blocks table")
    subgraph_schema: str = Field(default="sgd1", description="Schema holding the subgraph entity tables")


class DockerConfig(BaseModel):
    """Container status and indexer log scanning."""
    filter: str = Field(default="name=uniswap-v2-monitor-subgraph", description="docker ps filter")
    indexer_container: str = Field(default="uniswap-v2-monitor-subgraph_graph-node_1")
    log_tail: int = Field(default=1000, gt=0, description="Indexer log lines to scan per run")
    error_marker: str = Field(default="ERRO", description="Substring marking an error line")
    retry_marker: str = Field(default="retry", description="Substring marking a retry line")
    max_recent_errors: int = Field(default=10, gt=0, description="Error lines kept in the report")


class DiskMonitoringConfig(BaseModel):
    """Disk space thresholds and monitored mountpoints."""
    enabled: bool = Field(default=True)
    warning_threshold: float = Field(default=80, ge=0, le=100)
    critical_threshold: float = Field(default=90, ge=0, le=100)
    check_paths: list[str] = Field(default_factory=lambda: ["/", "/home", "/var", "/tmp"])

    @model_validator(mode="after")
    def _ordered_thresholds(self) -> "DiskMonitoringConfig":
        if self.warning_threshold >= self.critical_threshold:
            raise ValueError("warning_threshold must be below critical_threshold")
        return self


class EmailConfig(BaseModel):
    enabled: bool = False
    smtp: str = ""
    user: str = ""
    password: str = ""
    to: str = ""


class WebhookConfig(BaseModel):
    enabled: bool = False
    url: str = ""


class NotificationConfig(BaseModel):
    """Reserved notification settings. Parsed and shown, never delivered."""
    enabled: bool = False
    email: EmailConfig = Field(default_factory=EmailConfig)
    webhook: WebhookConfig = Field(default_factory=WebhookConfig)


class MonitoringConfig(BaseModel):
    """Main configuration for the monitoring service."""

    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    chain: ChainConfig = Field(default_factory=ChainConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    docker: DockerConfig = Field(default_factory=DockerConfig)
    disk_monitoring: DiskMonitoringConfig = Field(default_factory=DiskMonitoringConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)

    subgraph_path: str = Field(
        default="/home/code/uniswap-v2-monitor/uniswap-v2-monitor-subgraph",
        description="Checkout of the indexer deployment (holds data/postgres)"
    )
    request_timeout: float = Field(default=10.0, gt=0, description="Network request timeout in seconds")

    # Defined for compatibility with existing config files; no collector reads them.
    max_retries: int = Field(default=3, ge=0)
    retry_delay: float = Field(default=1.0, ge=0)

    log_level: str = Field(default="INFO", description="Logging level")
    logs_directory: str = Field(default="logs", description="Directory for daily log files")
    reports_directory: str = Field(default="reports", description="Directory for generated reports")
    checkpoint_file: str = Field(default="reports/.checkpoint.json", description="Stuck detector checkpoint")

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.schedule.timezone)


def _apply_env_overrides(config_data: dict[str, Any]) -> None:
    env_overrides = {
        ("log_level",): os.getenv("LOG_LEVEL"),
        ("chain", "rpc_url"): os.getenv("ETHEREUM_RPC"),
        ("chain", "graphql_endpoint"): os.getenv("GRAPHQL_ENDPOINT"),
        ("schedule", "monitor_days"): os.getenv("MONITOR_DAYS"),
        ("request_timeout",): os.getenv("REQUEST_TIMEOUT"),
    }

    for keys, value in env_overrides.items():
        if value is None:
            continue
        target = config_data
        for key in keys[:-1]:
            section = target.get(key)
            if not isinstance(section, dict):
                section = {}
                target[key] = section
            target = section
        target[keys[-1]] = value


def load_config(config_path: Optional[str] = None) -> MonitoringConfig:
    """Load configuration from file or environment variables."""
    if config_path is None:
        config_path = os.getenv("INDEXER_MONITOR_CONFIG", "config/monitoring.yaml")

    config_data: dict[str, Any] = {}

    if os.path.exists(config_path):
        try:
            with open(config_path, 'r') as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Cannot parse {config_path}: {e}") from e
        if not isinstance(config_data, dict):
            raise ConfigError(f"{config_path} must contain a mapping")

    _apply_env_overrides(config_data)

    try:
        return MonitoringConfig(**config_data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {config_path}: {e}") from e


def describe_config(config: MonitoringConfig) -> str:
    """Human readable summary of the effective configuration."""
    disk = config.disk_monitoring
    lifetime = "unbounded" if config.schedule.monitor_days == 0 else f"{config.schedule.monitor_days} days"
    lines = [
        "=== Indexer monitoring configuration ===",
        f"Lifetime: {lifetime}",
        f"Schedule: {config.schedule.cron} ({config.schedule.timezone})",
        f"Subgraph path: {config.subgraph_path}",
        f"GraphQL endpoint: {config.chain.graphql_endpoint}",
        f"Chain RPC: {config.chain.rpc_url}",
        f"Start block: {config.chain.start_block}",
        f"Database container: {config.database.container}",
        f"Indexer container: {config.docker.indexer_container}",
        f"Request timeout: {config.request_timeout}s",
        f"Max retries: {config.max_retries} (not used by collectors)",
        "",
        "Disk monitoring:",
        f"  Enabled: {disk.enabled}",
        f"  Warning threshold: {disk.warning_threshold}%",
        f"  Critical threshold: {disk.critical_threshold}%",
        f"  Paths: {', '.join(disk.check_paths)}",
        "",
        f"Notifications: {'enabled' if config.notifications.enabled else 'disabled'} (reserved)",
        f"Reports: {Path(config.reports_directory)}",
        f"Logs: {Path(config.logs_directory)}",
    ]
    return "\n".join(lines)
