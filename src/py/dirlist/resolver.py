import errno
import os
import posixpath
import stat
from pathlib import Path
from typing import NamedTuple, TypeAlias
from urllib.parse import quote

# Default prefix under which the embedded static assets are served
STATIC_PATH: str = "/static_contents"

# -----------------------------------------------------------------------------
#
# TARGETS
#
# -----------------------------------------------------------------------------


class File(NamedTuple):
	"""A regular file within the base directory."""

	path: Path


class Directory(NamedTuple):
	"""A directory within the base directory, along with its path parts
	relative to it."""

	path: Path
	parts: tuple[str, ...]

	@property
	def urlpath(self) -> str:
		return urlpath(self.parts)


class StaticAsset(NamedTuple):
	"""An asset of the embedded bundle, named relative to the static prefix."""

	name: str


class Missing(NamedTuple):
	"""Nothing servable exists at that path."""

	path: str


class Invalid(NamedTuple):
	"""The path could not be checked, which is an internal error."""

	path: str
	reason: str


TResolvedTarget: TypeAlias = File | Directory | StaticAsset | Missing | Invalid

# Errors that prove that a path does not exist
ABSENT: frozenset[int] = frozenset((errno.ENOENT, errno.ENOTDIR, errno.ENAMETOOLONG))


def urlpath(parts: tuple[str, ...] | list[str]) -> str:
	"""Encodes the given relative path parts as an absolute URL path, each
	segment being percent-encoded on its own."""
	res: str = "/".join(quote(os.fsencode(_), safe="") for _ in (".", *parts))
	# The leading current directory marker is stripped, `./a/b` becomes `/a/b`
	res = res[1:] if res.startswith(".") else res
	return res or "/"


def urlquote(path: str) -> str:
	"""Percent-encodes a decoded request path, undecodable bytes included,
	so that it can be shown to clients."""
	return quote(path, safe="/", errors="surrogateescape")


# -----------------------------------------------------------------------------
#
# RESOLVER
#
# -----------------------------------------------------------------------------


class PathResolver:
	"""Maps request paths to local paths within the base directory, and
	classifies them. Resolution checks are done in order: file, directory,
	static asset, missing, invalid."""

	def __init__(self, root: Path | str, static: str = STATIC_PATH):
		self.root: Path = Path(os.path.abspath(root))
		self.static: str = "/" + static.strip("/")

	def relparts(self, path: str) -> tuple[str, ...]:
		"""Normalizes the request path into its relative parts, `..` segments
		being clamped at the root."""
		normalized: str = posixpath.normpath("/" + path.lstrip("/"))
		return tuple(_ for _ in normalized.split("/") if _)

	def local(self, path: str) -> Path | None:
		"""Returns the local path for the request path, or `None` if it does
		not lie within the root."""
		if "\x00" in path:
			return None
		parts = self.relparts(path)
		local_path = Path(os.path.normpath(self.root.joinpath(*parts)))
		if local_path.parts[: len(root := self.root.parts)] != root:
			return None
		return local_path

	def isStatic(self, path: str) -> bool:
		return path == self.static or path.startswith(self.static + "/")

	def resolve(self, path: str) -> TResolvedTarget:
		local_path = self.local(path)
		failure: OSError | None = None
		st: os.stat_result | None = None
		if local_path is not None:
			try:
				st = os.stat(local_path)
			except OSError as e:
				failure = e
			except ValueError:
				# Not a valid path for the platform
				local_path = None
		if st and stat.S_ISREG(st.st_mode) and local_path:
			return File(local_path)
		elif st and stat.S_ISDIR(st.st_mode) and local_path:
			return Directory(local_path, local_path.relative_to(self.root).parts)
		elif self.isStatic(path):
			return StaticAsset(path[len(self.static) :].lstrip("/"))
		elif st or local_path is None:
			return Missing(path)
		elif failure is not None and failure.errno in ABSENT:
			return Missing(path)
		else:
			return Invalid(
				path, (failure.strerror or "I/O error") if failure else "Unknown error"
			)

	def __repr__(self) -> str:
		return f"(PathResolver {self.root} static={self.static})"


# EOF
