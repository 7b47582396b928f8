"""Persistence ports and their SQL implementations."""

from showops.repositories.audit import SqlAuditRepository
from showops.repositories.base import (
    AuditRepository,
    ConfigurationRepository,
    ProjectRepository,
    ReadinessRepository,
    TimecardRepository,
)
from showops.repositories.configuration import SqlConfigurationRepository
from showops.repositories.projects import SqlProjectRepository
from showops.repositories.readiness import SqlReadinessRepository
from showops.repositories.timecards import SqlTimecardRepository

__all__ = [
    "AuditRepository",
    "ConfigurationRepository",
    "ProjectRepository",
    "ReadinessRepository",
    "SqlAuditRepository",
    "SqlConfigurationRepository",
    "SqlProjectRepository",
    "SqlReadinessRepository",
    "SqlTimecardRepository",
    "TimecardRepository",
]
