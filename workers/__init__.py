# =============================================================================
# workers/ - Celery Background Task Workers
# =============================================================================
# This package contains the Celery configuration and task definitions for
# scheduled segment maintenance.
#
# Components:
# - celery_app.py: Celery application configuration
# - tasks.py: Task definitions (daily snapshot, segment recalculation)
# - config.py: Worker-specific settings and beat schedule
#
# Usage:
#   celery -A workers.celery_app worker --beat --loglevel=info
#
#   # Submit task (from API or shell)
#   from workers.tasks import recalculate_all_segments
#   result = recalculate_all_segments.delay()
# =============================================================================

from .celery_app import celery_app
from . import tasks

__all__ = [
    "celery_app",
    "tasks",
]
