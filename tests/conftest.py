"""
Shared pytest fixtures for ftag tests.

Every test runs with no user config or FTAG_* environment, and store
tests start from an empty working directory under tmp_path.
"""

from pathlib import Path

import pytest

from ftag.store import TagStore


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Point config and error log at the test's temp dir and clear FTAG_* vars."""
    for name in ("FTAG_DATABASE", "FTAG_DIRECTORY", "FTAG_SHOW_HIDDEN",
                 "FTAG_STRATEGY", "FTAG_VERBOSE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("FTAG_CONFIG", str(tmp_path / "no-such-config.toml"))
    monkeypatch.setenv("FTAG_ERROR_LOG", str(tmp_path / "ftag-errors.log"))
    yield
    # A failing test must not leave the next one unable to open a store
    if TagStore._active is not None:
        TagStore._active.close()


@pytest.fixture
def workdir(tmp_path, monkeypatch) -> Path:
    """An empty directory the test runs in."""
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.chdir(work)
    return work


@pytest.fixture
def store(workdir):
    """A fresh on-disk store in the working directory."""
    with TagStore.open(directory=workdir) as s:
        yield s


@pytest.fixture
def memory_store():
    """A transient store that never touches disk."""
    with TagStore.open(":memory:") as s:
        yield s
