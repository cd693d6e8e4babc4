from datetime import datetime, timezone

UTC = timezone.utc

# Fixed clock for prompt tests: 72.5 days before the due date
NOW = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
DUE_DATE = datetime(2026, 3, 15, tzinfo=UTC)
