from typing import Mapping

from .errors import BadRequest
from .templates import Template, TemplateRegistry

# The query parameter selecting the template
TYPE_PARAM: str = "type"


def negotiate(
	query: Mapping[str, str] | None,
	registry: TemplateRegistry,
	default: str,
) -> Template:
	"""Returns the template to render a directory with: the one named by
	the `type` query parameter when given, the default one otherwise.
	Raises `BadRequest` when there is no such (enabled) template."""
	name: str = (query.get(TYPE_PARAM) if query else None) or default
	template = registry.get(name)
	if template is None:
		raise BadRequest(f"Unsupported listing type: {name}")
	return template


# EOF
