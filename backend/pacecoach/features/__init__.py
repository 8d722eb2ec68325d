"""
Feature modules for pacecoach.

Each feature is a self-contained module with:
- models.py - Dataclass inputs and results
- schemas.py - Pydantic schemas
- service.py - Orchestration
- repository.py - Data access (optional)
"""
