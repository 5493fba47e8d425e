import os
import tomllib
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, NamedTuple

from extra.utils.logging import LOG_LEVEL_NAMES, LogLevel

from .bundle import EmbeddedBundle
from .errors import ConfigError
from .templates import timezoneNamed

# The configuration that is always loaded first, from the embedded bundle
DEFAULT_CONFIG: str = "default_conf.toml"

# Environment variables overriding configuration keys
ENVIRONMENT: dict[str, str] = {
	"DIRLIST_BASEPATH": "basepath",
	"DIRLIST_ADDRESS": "address",
	"DIRLIST_HIDE_DOTFILE": "hide_dotfile",
	"DIRLIST_DEFAULT_TYPE": "default_type",
	"DIRLIST_TIMEZONE": "timezone",
	"DIRLIST_TIME_FORMAT": "time_format",
}

LOG_REQUESTS: bool = os.getenv("DIRLIST_LOG_REQUESTS", "1") == "1"
LOG_LEVEL: str = os.getenv("DIRLIST_LOG_LEVEL", "info").lower()


class Config(NamedTuple):
	"""The process-wide configuration, immutable once loaded."""

	basepath: Path
	host: str
	port: int
	hideDotfile: bool
	defaultType: str
	timezone: str
	timeFormat: str
	templates: Mapping[str, Any]
	# Where relative local template paths are resolved from
	origin: Path | None = None

	@property
	def address(self) -> str:
		return f"[{self.host}]:{self.port}" if ":" in self.host else f"{self.host}:{self.port}"


def parseAddress(address: str) -> tuple[str, int]:
	"""Parses `HOST:PORT` (IPv6 hosts within brackets) into a host and a port."""
	host, sep, port = address.strip().rpartition(":")
	if not sep or not port.isdigit() or not (0 <= int(port) <= 65535):
		raise ConfigError(f"Address must be like HOST:PORT, got: {address!r}")
	host = host[1:-1] if host.startswith("[") and host.endswith("]") else host
	return host or "0.0.0.0", int(port)  # nosec: B104


def parseBool(value: str) -> bool:
	text: str = value.strip().lower()
	if text in ("1", "true", "yes", "on"):
		return True
	elif text in ("0", "false", "no", "off", ""):
		return False
	else:
		raise ConfigError(f"Expected a boolean value, got: {value!r}")


def logLevel(name: str) -> LogLevel:
	"""Returns the logging level with the given name, like `debug`."""
	level = LOG_LEVEL_NAMES.get(name.strip().lower())
	if level is None:
		raise ConfigError(
			f"Unknown log level '{name}', pick one of: {', '.join(LOG_LEVEL_NAMES)}"
		)
	return level


def readTOML(text: str, source: str) -> dict[str, Any]:
	try:
		return tomllib.loads(text)
	except tomllib.TOMLDecodeError as e:
		raise ConfigError(f"Malformed configuration in {source}: {e}") from e


def merge(base: dict[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
	"""Merges the overrides into the base configuration. The `templates`
	table is merged by template name, other keys are replaced."""
	res: dict[str, Any] = dict(base)
	for key, value in overrides.items():
		if value is None:
			continue
		elif key == "templates":
			if not isinstance(value, Mapping):
				raise ConfigError("'templates' must be a table")
			res[key] = dict(res.get(key) or {}) | dict(value)
		else:
			res[key] = value
	return res


def environ(env: Mapping[str, str]) -> dict[str, Any]:
	"""Returns the configuration overrides defined in the environment."""
	res: dict[str, Any] = {}
	for var, key in ENVIRONMENT.items():
		if (value := env.get(var)) is not None:
			res[key] = parseBool(value) if key == "hide_dotfile" else value
	return res


def expect(data: Mapping[str, Any], key: str, kind: type) -> Any:
	value = data.get(key)
	if not isinstance(value, kind):
		raise ConfigError(
			f"Configuration '{key}' must be a {kind.__name__}, got: {value!r}"
		)
	return value


def freeze(templates: Mapping[str, Any]) -> Mapping[str, Any]:
	"""Returns a read-only copy of the templates table, where each template
	definition is read-only as well."""
	return MappingProxyType(
		{
			k: MappingProxyType(dict(v)) if isinstance(v, Mapping) else v
			for k, v in templates.items()
		}
	)


def load(
	path: Path | str | None = None,
	overrides: Mapping[str, Any] | None = None,
	*,
	bundle: EmbeddedBundle | None = None,
	env: Mapping[str, str] | None = None,
) -> Config:
	"""Loads the configuration from the embedded defaults, then the optional
	configuration file at `path`, the environment and finally the given
	overrides. Raises `ConfigError` if the result is invalid."""
	bundle = bundle or EmbeddedBundle.Default()
	defaults = bundle.text(DEFAULT_CONFIG)
	if defaults is None:
		raise ConfigError(f"Embedded configuration is missing: {DEFAULT_CONFIG}")
	data: dict[str, Any] = readTOML(defaults, DEFAULT_CONFIG)
	origin: Path | None = None
	if path:
		p = Path(path).expanduser()
		try:
			text = p.read_text("utf8")
		except OSError as e:
			raise ConfigError(f"Could not read configuration {p}: {e}") from e
		data = merge(data, readTOML(text, str(p)))
		origin = p.absolute().parent
	data = merge(data, environ(os.environ if env is None else env))
	data = merge(data, overrides or {})
	# --
	# We validate the values
	basepath = Path(expect(data, "basepath", str)).expanduser().absolute()
	if not basepath.is_dir():
		raise ConfigError(f"Not a valid directory: {basepath}")
	host, port = parseAddress(expect(data, "address", str))
	timezone = expect(data, "timezone", str)
	timezoneNamed(timezone)
	templates = data.get("templates") or {}
	if not isinstance(templates, Mapping):
		raise ConfigError("'templates' must be a table")
	return Config(
		basepath=basepath,
		host=host,
		port=port,
		hideDotfile=expect(data, "hide_dotfile", bool),
		defaultType=expect(data, "default_type", str),
		timezone=timezone,
		timeFormat=expect(data, "time_format", str),
		templates=freeze(templates),
		origin=origin,
	)


# EOF
