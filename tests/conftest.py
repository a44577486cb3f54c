"""Shared test fixtures."""

import pytest

from cookiejar_api.services import CookieStore, Entry


def make_entry(name, value="v", domain="example.com", path="/"):
    return Entry(name=name, value=value, domain=domain, path=path, persistent=True)


@pytest.fixture
def jar_path(tmp_path):
    return tmp_path / "cookies.json"


@pytest.fixture
def store(jar_path):
    s = CookieStore()
    s.load(jar_path)
    return s


def temp_files(directory):
    return sorted(p.name for p in directory.iterdir() if p.name.endswith(".tmp"))
