import os
from pathlib import Path
from typing import Any, Callable

import pytest

from dirlist import config
from dirlist.app import build
from dirlist.bridge import Bridge


@pytest.fixture(autouse=True)
def cleanenv(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith("DIRLIST_") and name != "DIRLIST_LOG_LEVEL":
            monkeypatch.delenv(name)


@pytest.fixture
def tree(tmp_path: Path) -> Path:
    """A small directory tree to serve:

    hello.txt
    .hidden
    docs/a b.md
    docs/é.txt
    docs/nested/
    dangling -> nowhere
    """
    root = tmp_path / "root"
    root.mkdir()
    (root / "hello.txt").write_text("Hello, World!\n")
    (root / ".hidden").write_text("secret")
    docs = root / "docs"
    docs.mkdir()
    (docs / "a b.md").write_text("# Title\n")
    (docs / "é.txt").write_text("accent")
    (docs / "nested").mkdir()
    (root / "dangling").symlink_to(root / "nowhere")
    return root


@pytest.fixture
def makeBridge() -> Callable[..., Bridge]:
    """Returns a factory of bridges serving the given directory, with the
    given configuration overrides."""

    def factory(root: Path, **overrides: Any) -> Bridge:
        cfg = config.load(overrides={"basepath": str(root), **overrides}, env={})
        return Bridge(build(cfg))

    return factory


@pytest.fixture
def bridge(tree: Path, makeBridge: Callable[..., Bridge]) -> Bridge:
    return makeBridge(tree)


# EOF
