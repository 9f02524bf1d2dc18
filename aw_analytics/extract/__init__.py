"""
Extract Layer - Table Access

Read-only typed views over the source snapshot.
- No imports from transform or load layers
- Coerces source columns to their declared types
- Provides the joins the reports are built on
"""
