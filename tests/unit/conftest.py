"""Unit test conftest — no DB, no I/O."""
import pytest


# Ensure no DB fixtures leak into unit tests
@pytest.fixture(autouse=True)
def _no_db_in_unit_tests(request):
    """Guard: unit tests must not use DB fixtures."""
    for name in ("test_db_engine", "session_factory"):
        if name in request.fixturenames:
            pytest.fail(f"Unit tests must not use {name} fixture. Use @pytest.mark.integration.")
