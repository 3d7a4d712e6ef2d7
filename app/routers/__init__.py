# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - imports.py: CSV validation, Arketa import and import history
# - segments.py: Segment calculation, snapshots and change detection
# - fred.py: Fred analytics assistant
# - dashboard.py: Dashboard metrics and business settings
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import imports
from . import segments
from . import fred
from . import dashboard

__all__ = [
    "health",
    "imports",
    "segments",
    "fred",
    "dashboard",
]
