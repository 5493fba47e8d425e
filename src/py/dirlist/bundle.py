from importlib.resources import files
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import ClassVar

# -----------------------------------------------------------------------------
#
# EMBEDDED BUNDLE
#
# -----------------------------------------------------------------------------
# The bundle holds the assets shipped within the package: the default
# configuration, the built-in templates and the static resources served
# under the static prefix.


class EmbeddedBundle:
	"""Read-only access to the files shipped with the package, by
	`/`-separated relative path."""

	STATIC: ClassVar[str] = "static"

	@classmethod
	def Default(cls) -> "EmbeddedBundle":
		return cls(files(__package__ or "dirlist") / "embedded")

	def __init__(self, root: Traversable | Path):
		self.root: Traversable | Path = root

	def locate(self, path: str) -> Traversable | Path | None:
		"""Returns the bundled file at the given path, or `None` if there
		is none. Paths cannot go above the bundle root."""
		parts: list[str] = path.strip("/").split("/")
		if not parts or any(_ in ("", ".", "..") or "\\" in _ for _ in parts):
			return None
		node: Traversable | Path = self.root
		for part in parts:
			node = node / part
		return node if node.is_file() else None

	def read(self, path: str) -> bytes | None:
		node = self.locate(path)
		return node.read_bytes() if node else None

	def text(self, path: str) -> str | None:
		data = self.read(path)
		return data.decode("utf8") if data is not None else None

	def asset(self, name: str) -> bytes | None:
		"""Returns the static asset with the given name, as requested
		under the static prefix."""
		return self.read(f"{self.STATIC}/{name.strip('/')}") if name else None

	def __repr__(self) -> str:
		return f"(EmbeddedBundle {self.root})"


# EOF
