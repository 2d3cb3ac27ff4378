"""Pytest configuration for the splitpack test suite.

Hypothesis profiles:
- dev: default for local runs, 200 examples
- ci: 50 derandomized examples, selected when CI=true
- verbose: 100 examples with Hypothesis progress output

HYPOTHESIS_PROFILE=<name> selects a profile explicitly.

Property tests write manifests to disk and import them, so no profile sets a
deadline.

Tests marked @pytest.mark.fuzz run only with: pytest -m fuzz
"""

import os
from collections.abc import Iterator

import pytest
from hypothesis import HealthCheck, Verbosity, settings

from splitpack import runtime

# =============================================================================
# HYPOTHESIS PROFILES
# =============================================================================

_PROFILES: dict[str, dict[str, object]] = {
    "dev": {"max_examples": 200},
    "ci": {"max_examples": 50, "derandomize": True, "print_blob": True},
    "verbose": {"max_examples": 100, "verbosity": Verbosity.verbose},
}

for _name, _overrides in _PROFILES.items():
    settings.register_profile(
        _name,
        deadline=None,
        suppress_health_check=[HealthCheck.too_slow],
        **_overrides,  # type: ignore[arg-type]
    )


def _detect_profile() -> str:
    """Pick the Hypothesis profile: HYPOTHESIS_PROFILE, then CI, then dev."""
    explicit = os.environ.get("HYPOTHESIS_PROFILE")
    if explicit is not None and explicit in _PROFILES:
        return explicit
    if os.environ.get("CI") == "true":
        return "ci"
    return "dev"


settings.load_profile(_detect_profile())


# =============================================================================
# LOADER CACHE ISOLATION
# =============================================================================


@pytest.fixture(autouse=True)
def _fresh_loader_cache() -> Iterator[None]:
    """Every test starts and ends with an empty chunk loader cache."""
    runtime.clear_cache()
    yield
    runtime.clear_cache()


# =============================================================================
# FUZZING TEST SEPARATION
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Register the fuzz marker."""
    config.addinivalue_line(
        "markers",
        "fuzz: long Hypothesis runs over large value graphs (pytest -m fuzz)",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip fuzz tests unless the -m expression mentions fuzz."""
    if "fuzz" in str(config.getoption("-m", default="")):
        return
    skip_fuzz = pytest.mark.skip(reason="fuzz test, run with: pytest -m fuzz")
    for item in items:
        if "fuzz" in item.keywords:
            item.add_marker(skip_fuzz)
