"""
Orchestration Layer - Workflow Coordination

This layer coordinates report runs.
- Pure workflow coordination
- No business logic
- Composes extract, transform, and load operations
"""
