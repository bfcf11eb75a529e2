"""Error taxonomy shared by the activity and dashboard services."""


class MediaHubError(Exception):
    """Base exception for service errors."""

    pass


class ValidationError(MediaHubError):
    """Raised when a caller supplies an out-of-range or out-of-enum argument."""

    pass


class InvalidChartTypeError(ValidationError):
    """Raised when a dashboard chart type is not recognized."""

    def __init__(self, chart_type: str) -> None:
        super().__init__(f"Invalid chart type: {chart_type}")
        self.chart_type = chart_type


class StorageError(MediaHubError):
    """Raised when the persistence layer fails (connectivity, constraints)."""

    pass


class ActivityQueryError(StorageError):
    """Raised when an activity log query cannot be completed."""

    pass


class ChartQueryError(StorageError):
    """Raised when a dashboard chart aggregation cannot be completed."""

    pass
