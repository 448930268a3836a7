"""Business metrics catalog with standardized naming.

This module defines all business metrics that can be emitted by the application.
Use the enum values to ensure consistent naming across the codebase.
"""

from enum import Enum


class MetricCategory(str, Enum):
    """Categories for grouping business metrics."""

    IMPORT = "import"
    REGISTRY = "registry"
    SECURITY = "security"
    DATA_QUALITY = "data_quality"


class BusinessMetric:
    """Catalog of all business metrics with standardized naming."""

    # Import metrics
    IMPORT_STARTED = "ImportStarted"
    IMPORT_COMPLETED = "ImportCompleted"
    IMPORT_FAILED = "ImportFailed"
    IMPORT_CANCELLED = "ImportCancelled"
    IMPORT_ROWS_PROCESSED = "ImportRowsProcessed"
    IMPORT_ROWS_FAILED = "ImportRowsFailed"
    IMPORT_VALIDATION_ERROR = "ImportValidationError"

    # Registry metrics
    MEMBER_CREATED = "MemberCreated"
    MEMBER_UPDATED = "MemberUpdated"

    # Security metrics
    PERMISSION_DENIED = "PermissionDenied"

    # Data Quality metrics
    UNKNOWN_GROUP_REFERENCED = "UnknownGroupReferenced"
