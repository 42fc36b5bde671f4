"""Rota package: assignment conflict validation and recurring job generation.

Modules:
- config: load and validate configuration (YAML or JSON)
- exceptions: hard-failure error types
- domain: SQLAlchemy models, database helpers and repositories
- services: conflict checkers, assignment validator, recurring generator
- io: CSV import helpers
- cli: command-line interface entrypoints
"""

__version__ = "0.1.0"

__all__ = [
    "config",
    "exceptions",
    "domain",
    "services",
    "io",
    "cli",
]
