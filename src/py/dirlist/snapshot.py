import mimetypes
import os
import stat
from pathlib import Path
from typing import Any, NamedTuple

from extra.utils.files import MIME_TYPES as BASE_MIME_TYPES
from extra.utils.logging import warning

from .errors import NotFound
from .resolver import urlpath

# Types that are missing from some platforms' tables
MIME_TYPES: dict[str, str] = BASE_MIME_TYPES | dict(
	md="text/markdown",
	mjs="text/javascript",
	webp="image/webp",
)


def guessContentType(name: str) -> str | None:
	"""Guesses the content type from the given file name only, returns
	`None` when the extension is unknown."""
	ext: str = name.rsplit(".", 1)[-1].lower() if "." in name else ""
	return (
		res
		if (res := MIME_TYPES.get(ext))
		else mimetypes.guess_type(name, strict=False)[0]
	)


def contentType(name: str, default: str = "application/octet-stream") -> str:
	return guessContentType(name) or default


def displayName(name: str) -> str:
	"""Returns the name as shown to clients, where bytes that are not valid
	UTF-8 are replaced."""
	return os.fsencode(name).decode("utf8", errors="replace")


# -----------------------------------------------------------------------------
#
# ENTRIES
#
# -----------------------------------------------------------------------------


class FileMetadata(NamedTuple):
	isFile: bool
	isDirectory: bool
	isSymlink: bool
	# In bytes
	size: int
	# In seconds since the epoch
	modified: float | None = None
	accessed: float | None = None
	created: float | None = None

	@staticmethod
	def FromStat(st: os.stat_result, *, isSymlink: bool = False) -> "FileMetadata":
		return FileMetadata(
			isFile=stat.S_ISREG(st.st_mode),
			isDirectory=stat.S_ISDIR(st.st_mode),
			isSymlink=isSymlink or stat.S_ISLNK(st.st_mode),
			size=st.st_size,
			modified=st.st_mtime,
			accessed=st.st_atime,
			# Only some platforms know the birth time
			created=getattr(st, "st_birthtime", None),
		)

	def asPrimitive(self) -> dict[str, Any]:
		return {
			"is_file": self.isFile,
			"is_directory": self.isDirectory,
			"is_symlink": self.isSymlink,
			"size": self.size,
			"modified": self.modified,
			"accessed": self.accessed,
			"created": self.created,
		}


class FileEntry(NamedTuple):
	"""A directory entry. The `name` is the local one, `urlpath` encodes its
	exact bytes, and the primitive form holds the name as shown to clients."""

	name: str
	urlpath: str
	metadata: FileMetadata | None = None
	# Guessed from the extension, might be inaccurate
	mimeType: str | None = None

	@staticmethod
	def FromDirEntry(entry: os.DirEntry[str], parts: tuple[str, ...]) -> "FileEntry":
		"""Creates an entry from a directory listing entry, `parts` being
		the path parts of the listed directory. Metadata is `None` when the
		entry can't be stat'ed (a dangling link, a vanished file)."""
		metadata: FileMetadata | None
		try:
			is_symlink: bool = entry.is_symlink()
			metadata = FileMetadata.FromStat(entry.stat(), isSymlink=is_symlink)
		except OSError:
			metadata = None
		return FileEntry(
			name=entry.name,
			urlpath=urlpath((*parts, entry.name)),
			metadata=metadata,
			mimeType=(
				None
				if metadata and metadata.isDirectory
				else guessContentType(entry.name)
			),
		)

	@property
	def isDirectory(self) -> bool:
		return bool(self.metadata and self.metadata.isDirectory)

	def asPrimitive(self) -> dict[str, Any]:
		return {
			"name": displayName(self.name),
			"urlpath": self.urlpath,
			"metadata": self.metadata.asPrimitive() if self.metadata else None,
			"mime_type": self.mimeType,
		}


# -----------------------------------------------------------------------------
#
# SNAPSHOT
#
# -----------------------------------------------------------------------------


class DirectorySnapshot(NamedTuple):
	"""The immutable description of a directory's direct children, in
	the order in which they were listed."""

	name: str
	urlpath: str
	parent: str | None
	entries: tuple[FileEntry, ...]

	@staticmethod
	def Make(
		path: Path, parts: tuple[str, ...] = (), *, hideDotfiles: bool = False
	) -> "DirectorySnapshot":
		"""Lists the directory at `path`, which is at the given `parts`
		relative to the base directory. Raises `NotFound` if the directory
		can't be listed."""
		entries: list[FileEntry] = []
		try:
			with os.scandir(path) as listing:
				iterator = iter(listing)
				while True:
					try:
						entry = next(iterator)
					except StopIteration:
						break
					except OSError as e:
						# That one entry is skipped, listing continues if it can
						warning("Could not list entry", Path=str(path), Reason=str(e))
						continue
					if hideDotfiles and entry.name.startswith("."):
						continue
					entries.append(FileEntry.FromDirEntry(entry, parts))
		except OSError as e:
			raise NotFound(f"Directory not found: {urlpath(parts)}") from e
		return DirectorySnapshot(
			name=parts[-1] if parts else "",
			urlpath=urlpath(parts),
			parent=urlpath(parts[:-1]) if parts else None,
			entries=tuple(entries),
		)

	def asPrimitive(self) -> dict[str, Any]:
		return {
			"name": displayName(self.name),
			"urlpath": self.urlpath,
			"parent": self.parent,
			"entries": [_.asPrimitive() for _ in self.entries],
		}


# EOF
