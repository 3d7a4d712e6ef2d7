# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the Talo Studio API:
# - test_validation.py / test_csv_parser.py: CSV checks and parsing
# - test_segments.py / test_change_detection.py: segmentation and diffs
# - test_import.py: the import pipeline end to end
# - test_analytics.py / test_fred.py: metric registry and assistant
# - test_api.py: HTTP routes via TestClient
#
# Run tests with: pytest
# =============================================================================
