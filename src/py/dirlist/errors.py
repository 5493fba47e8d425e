from typing import ClassVar

from extra.http.model import HTTPRequestError

# Content type of the error responses
ERROR_CONTENT_TYPE: str = "text/plain; charset=UTF-8"

# -----------------------------------------------------------------------------
#
# STARTUP ERRORS
#
# -----------------------------------------------------------------------------
# These abort the process before it starts listening.


class DirlistError(Exception):
	"""Base class for the errors raised while setting up the server."""


class ConfigError(DirlistError):
	"""The configuration is malformed or inconsistent."""


class TemplateError(ConfigError):
	"""A template definition is invalid, references a missing file or has
	a syntax error."""


# -----------------------------------------------------------------------------
#
# REQUEST ERRORS
#
# -----------------------------------------------------------------------------
# These are converted to plain text responses by the route handlers, their
# message must be safe to send to clients.


class RequestError(HTTPRequestError):
	STATUS: ClassVar[int] = 500

	def __init__(self, message: str, status: int | None = None):
		super().__init__(message, status or self.STATUS, ERROR_CONTENT_TYPE)


class NotFound(RequestError):
	STATUS: ClassVar[int] = 404


class BadRequest(RequestError):
	STATUS: ClassVar[int] = 400


class InternalError(RequestError):
	STATUS: ClassVar[int] = 500


class RenderError(InternalError):
	"""A template failed to render."""


# EOF
