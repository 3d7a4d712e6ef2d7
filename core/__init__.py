# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains the studio's business logic:
# - models/: Pydantic schemas for data validation
# - services/: CSV validation, customer import, segmentation, snapshots,
#   change detection, dashboard and settings
#
# Code in this package should NOT import from FastAPI routers or Celery.
# This keeps the logic testable and reusable.
# =============================================================================
