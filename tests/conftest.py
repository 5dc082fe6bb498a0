"""Shared test fixtures and configuration."""

from __future__ import annotations

import os

import pytest

from vortex_search.search.engine import SearchEngine


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    """Drop VORTEX_* variables and run from an empty directory so no .env file leaks in."""
    for key in list(os.environ):
        if key.upper().startswith("VORTEX_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def events() -> list:
    """Collects events emitted by an engine built with ``event_sink=events.append``."""
    return []


@pytest.fixture
def engine(events) -> SearchEngine:
    return SearchEngine(name="test", event_sink=events.append)


@pytest.fixture
def sample_engine(engine) -> SearchEngine:
    """Engine with a small mixed corpus."""
    engine.add_document("doc1", "Apple", "A red fruit that keeps the doctor away.")
    engine.add_document("doc2", "Banana", "A yellow fruit. Apple is also a fruit.")
    engine.add_document("doc3", "Finance Advice", "Save money and invest wisely.")
    engine.add_document("doc4", "Computer Repair", "How to fix your broken pc.")
    return engine
