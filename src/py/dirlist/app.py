from extra.model import Application, mount
from extra.utils.logging import info

from .bundle import EmbeddedBundle
from .config import Config
from .errors import ConfigError
from .resolver import STATIC_PATH, PathResolver
from .services.listing import ListingService
from .templates import Renderer, SharedContext, TemplateRegistry


def service(config: Config, bundle: EmbeddedBundle | None = None) -> ListingService:
	"""Creates the listing service from the configuration, loading and
	compiling the templates. Raises `ConfigError` (or `TemplateError`) when
	the configuration is inconsistent."""
	bundle = bundle or EmbeddedBundle.Default()
	registry = TemplateRegistry.FromConfig(config.templates, bundle, config.origin)
	if config.defaultType not in registry:
		raise ConfigError(
			f"Default type '{config.defaultType}' is not an enabled template, pick one of: {', '.join(registry)}"
		)
	info(
		"Templates loaded",
		Templates=list(registry),
		Default=config.defaultType,
	)
	renderer = Renderer(
		registry,
		SharedContext(
			staticPath=STATIC_PATH,
			timezone=config.timezone,
			timeFormat=config.timeFormat,
		),
	)
	return ListingService(
		PathResolver(config.basepath, STATIC_PATH),
		renderer,
		bundle,
		defaultType=config.defaultType,
		hideDotfiles=config.hideDotfile,
	)


def build(config: Config, bundle: EmbeddedBundle | None = None) -> Application:
	"""Builds the application serving the configured base directory."""
	return mount(service(config, bundle))


# EOF
