from pathlib import Path

from setuptools import find_namespace_packages

ROOT = Path(__file__).resolve().parent.parent


def test_every_subpackage_is_discovered_without_init_files():
    found = set(find_namespace_packages(str(ROOT), include=["tailor*"]))
    assert {"tailor", "tailor.core", "tailor.llm", "tailor.services", "tailor.routers", "tailor.schemas"} <= found
    assert not list((ROOT / "tailor").rglob("__init__.py"))
