# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains framework-agnostic business logic:
# - models/: Pydantic schemas for properties and weather snapshots
# - validation.py: Explicit input format checks
# - services/: The property creation pipeline and query/delete path
#
# Code in this package should NOT import FastAPI routers or app.main.
# This keeps the logic testable and reusable.
# =============================================================================
