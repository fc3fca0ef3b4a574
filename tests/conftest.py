"""Shared pytest fixtures for fnbundle tests."""

from __future__ import annotations

import pytest

from fnbundle.testing import FakeBackend


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def write_source(tmp_path):
    """Write a function source file and return its absolute path as str."""

    def _write(relative: str, content: str = "module.exports = {}\n") -> str:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return str(path.resolve())

    return _write
