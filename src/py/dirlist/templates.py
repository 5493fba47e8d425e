from datetime import datetime, timezone, tzinfo
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterator, Mapping, NamedTuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import jinja2
from extra.utils.json import json
from extra.utils.logging import info

from .bundle import EmbeddedBundle
from .errors import ConfigError, RenderError, TemplateError
from .snapshot import DirectorySnapshot

DEFAULT_CONTENT_TYPE: str = "text/html; charset=UTF-8"


def dumps(value: Any, **options: Any) -> str:
	"""Serializes values for the `tojson` filter, Jinja's own options are
	not supported."""
	return json(value).decode("utf8")


# -----------------------------------------------------------------------------
#
# TEMPLATES
#
# -----------------------------------------------------------------------------


class Template(NamedTuple):
	"""A named template, whose source is resolved to text when the registry
	is built."""

	name: str
	contentType: str
	text: str

	@property
	def isMarkup(self) -> bool:
		"""Markup templates have their values escaped."""
		return any(_ in self.contentType for _ in ("html", "xml"))

	@staticmethod
	def FromDefinition(
		name: str,
		definition: Any,
		bundle: EmbeddedBundle,
		base: Path | None = None,
	) -> "Template | None":
		"""Creates a template from its configuration definition, returning
		`None` when the definition is disabled. Definitions either have
		an inline `content`, or a `path` to an embedded (`is_embedded`) or
		local template file, `base` being the directory that relative local
		paths are resolved against."""
		if not isinstance(definition, Mapping):
			raise TemplateError(f"Template '{name}' definition must be a table")
		disabled = definition.get("disabled", False)
		if not isinstance(disabled, bool):
			raise TemplateError(f"Template '{name}' 'disabled' must be a boolean")
		elif disabled:
			return None
		content_type = definition.get("content_type", DEFAULT_CONTENT_TYPE)
		if not isinstance(content_type, str) or not content_type:
			raise TemplateError(f"Template '{name}' 'content_type' must be a string")
		text: str | None
		if "path" in definition:
			path = definition["path"]
			is_embedded = definition.get("is_embedded", False)
			if not isinstance(path, str) or not isinstance(is_embedded, bool):
				raise TemplateError(
					f"Template '{name}' 'path' must be a string and 'is_embedded' a boolean"
				)
			if is_embedded:
				text = bundle.text(path)
				if text is None:
					raise TemplateError(
						f"Template '{name}' embedded file not found: {path}"
					)
			else:
				local = Path(path).expanduser()
				local = local if local.is_absolute() else (base or Path.cwd()) / local
				try:
					text = local.read_text("utf8")
				except (OSError, UnicodeDecodeError) as e:
					raise TemplateError(
						f"Template '{name}' could not read file {local}: {e}"
					) from e
		elif "content" in definition:
			text = definition["content"]
			if not isinstance(text, str):
				raise TemplateError(f"Template '{name}' 'content' must be a string")
		else:
			raise TemplateError(
				f"Template '{name}' must define either 'content' or 'path'"
			)
		return Template(name=name, contentType=content_type, text=text)


class TemplateRegistry:
	"""The immutable registry of enabled templates, keyed by name. Templates
	are compiled when the registry is created, so that syntax errors are
	found at startup."""

	@classmethod
	def FromConfig(
		cls,
		table: Mapping[str, Any],
		bundle: EmbeddedBundle,
		base: Path | None = None,
	) -> "TemplateRegistry":
		templates: list[Template] = []
		for name, definition in table.items():
			template = Template.FromDefinition(name, definition, bundle, base)
			if template:
				templates.append(template)
			else:
				info("Template disabled", Name=name)
		return cls(templates)

	def __init__(self, templates: list[Template]):
		self.templates: Mapping[str, Template] = MappingProxyType(
			{_.name: _ for _ in templates}
		)
		self.environment: jinja2.Environment = jinja2.Environment(
			loader=jinja2.DictLoader({k: v.text for k, v in self.templates.items()}),
			autoescape=lambda name: bool(
				name and name in self.templates and self.templates[name].isMarkup
			),
			undefined=jinja2.StrictUndefined,
			keep_trailing_newline=True,
			auto_reload=False,
		)
		self.environment.policies["json.dumps_function"] = dumps
		# Filters must be known before templates are compiled
		self.environment.filters["filesize"] = filesize
		self.environment.filters["datetime"] = formatTime
		for name in self.templates:
			try:
				self.environment.get_template(name)
			except jinja2.TemplateSyntaxError as e:
				raise TemplateError(
					f"Template '{name}' has a syntax error at line {e.lineno}: {e.message}"
				) from e

	def get(self, name: str) -> Template | None:
		return self.templates.get(name)

	def compiled(self, template: Template) -> jinja2.Template:
		return self.environment.get_template(template.name)

	def __contains__(self, name: object) -> bool:
		return name in self.templates

	def __iter__(self) -> Iterator[str]:
		return iter(self.templates)

	def __len__(self) -> int:
		return len(self.templates)

	def __repr__(self) -> str:
		return f"(TemplateRegistry {' '.join(self.templates)})"


# -----------------------------------------------------------------------------
#
# RENDERING
#
# -----------------------------------------------------------------------------


def filesize(size: int | None) -> str:
	"""Formats a size in bytes for humans."""
	if size is None:
		return ""
	value: float = float(size)
	for unit in ("B", "KiB", "MiB", "GiB", "TiB"):
		if value < 1024 or unit == "TiB":
			return f"{size} B" if unit == "B" else f"{value:0.1f} {unit}"
		value /= 1024
	return f"{size} B"


def timezoneNamed(name: str) -> tzinfo:
	"""Returns the timezone with the given IANA name, raising a
	`ConfigError` if it is unknown."""
	if name.upper() == "UTC":
		return timezone.utc
	try:
		return ZoneInfo(name)
	except (ZoneInfoNotFoundError, ValueError) as e:
		raise ConfigError(f"Unknown timezone: {name}") from e


@jinja2.pass_context
def formatTime(
	context: jinja2.runtime.Context, timestamp: float | None, format: str | None = None
) -> str:
	"""Formats a timestamp with the `time_format` and `timezone` of the
	render context, or the given format."""
	if timestamp is None:
		return ""
	return datetime.fromtimestamp(
		timestamp, timezoneNamed(context.get("timezone") or "UTC")
	).strftime(format or context.get("time_format") or "%Y-%m-%d %H:%M:%S")


class SharedContext(NamedTuple):
	"""The values available to every render, created once at startup."""

	staticPath: str
	timezone: str
	timeFormat: str


class RenderContext(NamedTuple):
	"""The values given to a template for one render."""

	shared: SharedContext
	snapshot: DirectorySnapshot

	def asTemplateContext(self) -> dict[str, Any]:
		return {
			"static_path": self.shared.staticPath,
			"timezone": self.shared.timezone,
			"time_format": self.shared.timeFormat,
			"dir": self.snapshot.asPrimitive(),
		}


class Rendered(NamedTuple):
	contentType: str
	body: bytes


class Renderer:
	"""Renders directory snapshots with the templates of a registry."""

	def __init__(self, registry: TemplateRegistry, shared: SharedContext):
		self.registry: TemplateRegistry = registry
		self.shared: SharedContext = shared
		# Fails early on an unknown timezone
		timezoneNamed(shared.timezone)

	def context(self, snapshot: DirectorySnapshot) -> RenderContext:
		return RenderContext(self.shared, snapshot)

	def render(self, template: Template, snapshot: DirectorySnapshot) -> Rendered:
		"""Renders the snapshot in full before returning it, raising a
		`RenderError` if the template fails."""
		try:
			text: str = self.registry.compiled(template).render(
				self.context(snapshot).asTemplateContext()
			)
		except jinja2.TemplateError as e:
			raise RenderError(f"Template '{template.name}' failed to render") from e
		return Rendered(template.contentType, text.encode("utf8"))


# EOF
