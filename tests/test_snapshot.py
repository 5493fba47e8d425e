import os
import sys
from pathlib import Path
from urllib.parse import unquote, unquote_to_bytes

import pytest

from dirlist.errors import NotFound
from dirlist.snapshot import DirectorySnapshot, FileEntry, displayName


def entries(snapshot: DirectorySnapshot) -> dict[str, FileEntry]:
    return {_.name: _ for _ in snapshot.entries}


def test_lists_root(tree: Path):
    snapshot = DirectorySnapshot.Make(tree)
    assert snapshot.name == ""
    assert snapshot.urlpath == "/"
    assert snapshot.parent is None
    assert set(entries(snapshot)) == {"hello.txt", ".hidden", "docs", "dangling"}


def test_hides_dotfiles(tree: Path):
    snapshot = DirectorySnapshot.Make(tree, hideDotfiles=True)
    assert ".hidden" not in entries(snapshot)
    assert "hello.txt" in entries(snapshot)


def test_entry_metadata(tree: Path):
    listed = entries(DirectorySnapshot.Make(tree))
    hello = listed["hello.txt"]
    assert hello.urlpath == "/hello.txt"
    assert hello.mimeType == "text/plain"
    assert hello.metadata is not None
    assert hello.metadata.isFile and not hello.metadata.isDirectory
    assert hello.metadata.size == len("Hello, World!\n")
    assert hello.metadata.modified is not None
    docs = listed["docs"]
    assert docs.isDirectory
    assert docs.mimeType is None


def test_dangling_links_have_no_metadata(tree: Path):
    dangling = entries(DirectorySnapshot.Make(tree))["dangling"]
    assert dangling.metadata is None
    assert not dangling.isDirectory
    assert dangling.asPrimitive()["metadata"] is None


def test_symlinks_are_followed(tree: Path):
    (tree / "link").symlink_to(tree / "docs")
    link = entries(DirectorySnapshot.Make(tree))["link"]
    assert link.metadata is not None
    assert link.metadata.isDirectory and link.metadata.isSymlink


def test_nested_urlpaths(tree: Path):
    snapshot = DirectorySnapshot.Make(tree / "docs", ("docs",))
    assert snapshot.name == "docs"
    assert snapshot.urlpath == "/docs"
    assert snapshot.parent == "/"
    listed = entries(snapshot)
    assert listed["a b.md"].urlpath == "/docs/a%20b.md"
    assert listed["a b.md"].mimeType == "text/markdown"
    assert listed["é.txt"].urlpath == "/docs/%C3%A9.txt"
    nested = DirectorySnapshot.Make(tree / "docs" / "nested", ("docs", "nested"))
    assert nested.parent == "/docs"
    assert nested.entries == ()


def test_primitive_keys(tree: Path):
    data = DirectorySnapshot.Make(tree).asPrimitive()
    assert set(data) == {"name", "urlpath", "parent", "entries"}
    hello = next(_ for _ in data["entries"] if _["name"] == "hello.txt")
    assert set(hello) == {"name", "urlpath", "metadata", "mime_type"}
    assert set(hello["metadata"]) == {
        "is_file",
        "is_directory",
        "is_symlink",
        "size",
        "modified",
        "accessed",
        "created",
    }


def test_missing_directory(tree: Path):
    with pytest.raises(NotFound) as e:
        DirectorySnapshot.Make(tree / "nothing", ("nothing",))
    assert e.value.status == 404


def test_urlpaths_decode_to_names(tree: Path):
    snapshot = DirectorySnapshot.Make(tree / "docs", ("docs",))
    assert {_.name for _ in snapshot.entries} == {"a b.md", "é.txt", "nested"}
    for entry in snapshot.entries:
        parent, _, segment = entry.urlpath.rpartition("/")
        assert parent == "/docs"
        assert unquote(segment) == entry.name


@pytest.mark.skipif(
    sys.platform != "linux", reason="File names must be allowed to hold any byte"
)
def test_undecodable_names(tmp_path: Path):
    (tmp_path / os.fsdecode(b"caf\xe9.txt")).write_text("latin-1")
    (entry,) = DirectorySnapshot.Make(tmp_path, ("dir",)).entries
    assert entry.name == os.fsdecode(b"caf\xe9.txt")
    assert entry.urlpath == "/dir/caf%E9.txt"
    assert unquote_to_bytes(entry.urlpath.rpartition("/")[2]) == b"caf\xe9.txt"
    assert entry.mimeType == "text/plain"
    assert entry.asPrimitive()["name"] == "caf�.txt"
    assert displayName("é") == "é"


# EOF
