"""Shared pytest configuration for the test suite."""

from __future__ import annotations

import contextlib
import sys
from pathlib import Path

import pytest
from loguru import logger


def ensure_src_on_path() -> None:
    """Ensure the project source directory is importable before tests run."""
    src = Path(__file__).resolve().parent.parent / "src"
    if src.exists() and str(src) not in sys.path:
        sys.path.insert(0, str(src))


ensure_src_on_path()


@pytest.fixture(autouse=True)
def reset_loguru():
    """Restore loguru's default sink after each test."""
    yield
    logger.remove()
    logger.configure(extra={"component": "salesboard"})
    logger.add(sys.stderr, level="WARNING")


@pytest.fixture
def log_messages():
    """Collect loguru records emitted during a test."""
    records: list = []
    sink_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    with contextlib.suppress(ValueError):
        logger.remove(sink_id)


@pytest.fixture
def city_report() -> dict:
    """SKU metrics payload grouped by city with points of sale."""
    return {
        "CityA": {
            "total": 10,
            "w1": 4,
            "w2": 6,
            "pocs": {
                "P1": {"total": 10, "w1": 4, "w2": 6},
            },
        },
        "CityB": {"total": 5, "w1": 2, "w2": 3},
    }


@pytest.fixture
def region_report() -> dict:
    """Top-SKU payload grouped region -> city -> SKU."""
    return {
        "costa": {
            "guayaquil": {
                "Pilsener 600ml": {"w12": 120.5, "w13": 98.0, "total": 218.5},
                "Club 330ml": {"w13": 40.0, "total": 40.0},
            },
            "manta": {
                "Pilsener 600ml": {"w12": 30.0, "w13": 12.0, "total": 42.0},
            },
        },
        "sierra": {
            "quito": {
                "Pilsener 600ml": {"w3": 7.0, "w12": 55.0, "total": 62.0},
            },
        },
    }
