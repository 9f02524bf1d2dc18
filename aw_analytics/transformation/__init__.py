"""
Transformation Layer - Pure, Deterministic Functions

This layer contains the eight analytical reports.
- Pure functions (SourceTables → result table)
- No I/O operations
- Unit testable
- Deterministic results
"""
