from pathlib import Path

import pytest


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in str(test_path):
            item.add_marker(pytest.mark.bdd)


@pytest.fixture(autouse=True)
def run_around_tests():
    """Drop any collaborators a test installed"""
    yield

    from checkout.gateways import reset_gateways

    reset_gateways()
