"""
Load Layer - Data Persistence

This layer handles all file I/O.
- Reading source table snapshots (Parquet, CSV, JSON)
- Writing report results
- No business logic, just I/O operations
"""
