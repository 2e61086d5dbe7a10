"""
ParkShare Backend — Application Package Initializer
====================================================

What: Marks the `parkshare` directory as a Python package.
Who:  Imported by uvicorn (`parkshare.main:app`), Alembic and pytest.

Architecture Note:
    The backend is layered the same way for every resource:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, dependencies
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← validation rules, authorization
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Database handle, async sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
