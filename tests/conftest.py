"""Pytest fixtures for BlastMeta tests."""

from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture(scope="session")
def test_data(tmp_path_factory) -> dict:
    """Generate a results directory and metadata table once per session."""
    from tests.generate_test_data import generate_test_data

    d = tmp_path_factory.mktemp("blastmeta_test")
    return generate_test_data(d)


@pytest.fixture
def results_dir(test_data) -> Path:
    return test_data["results_dir"]


@pytest.fixture
def metadata_path(test_data) -> Path:
    return test_data["metadata"]


@pytest.fixture
def example_row() -> str:
    return "Staphylococcus epidermidis,ERR1942280.1,subj1,98.5,100,1,0,1,100,1,100,1e-50,180"
