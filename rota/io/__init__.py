"""I/O utilities for CSV import."""

from .import_csv import (
    import_availability_csv,
    import_jobs_csv,
    import_leave_csv,
    import_locations_csv,
    import_workers_csv,
)

__all__ = [
    "import_availability_csv",
    "import_jobs_csv",
    "import_leave_csv",
    "import_locations_csv",
    "import_workers_csv",
]
