import os
from urllib.parse import unquote, unquote_plus

from extra.decorators import on, post
from extra.http.model import HTTPBodyBlob, HTTPRequest, HTTPRequestError, HTTPResponse
from extra.model import Service
from extra.utils.logging import exception, info, warning

from ..bundle import EmbeddedBundle
from ..errors import ERROR_CONTENT_TYPE, InternalError, NotFound
from ..negotiation import negotiate
from ..resolver import (
	Directory,
	File,
	Invalid,
	Missing,
	PathResolver,
	StaticAsset,
	TResolvedTarget,
	urlquote,
)
from ..snapshot import DirectorySnapshot, contentType
from ..templates import Renderer

# Embedded assets only change with the package
CACHE_FOREVER: str = "public, max-age=31536000, immutable"


def requestPath(path: str) -> str:
	"""Percent-decodes the routed path. Bytes that are not valid UTF-8 are
	kept as surrogates, so that they map back to the same local names."""
	return unquote(f"/{path}", errors="surrogateescape")


def requestQuery(request: HTTPRequest) -> dict[str, str]:
	return {
		unquote_plus(k): unquote_plus(v) for k, v in (request.query or {}).items() if k
	}


def stripBody(request: HTTPRequest, response: HTTPResponse) -> HTTPResponse:
	"""Answers `HEAD` with the head of the `GET` response only."""
	if request.method == "HEAD" and response.body is not None:
		response.body = HTTPBodyBlob(b"", 0)
	return response


class ListingService(Service):
	"""Serves the files of the base directory as they are, directories as
	listings rendered with the negotiated template, and the embedded static
	assets under the static prefix."""

	def __init__(
		self,
		resolver: PathResolver,
		renderer: Renderer,
		bundle: EmbeddedBundle,
		*,
		defaultType: str,
		hideDotfiles: bool = False,
	):
		super().__init__()
		self.resolver: PathResolver = resolver
		self.renderer: Renderer = renderer
		self.bundle: EmbeddedBundle = bundle
		self.defaultType: str = defaultType
		self.hideDotfiles: bool = hideDotfiles

	# NOTE: Every method is processed like a GET
	@on(GET_HEAD_POST_PUT_PATCH_DELETE_OPTIONS="/{path:any}")
	@post(stripBody)
	def read(self, request: HTTPRequest, path: str = "") -> HTTPResponse:
		target: TResolvedTarget = self.resolver.resolve(requestPath(path))
		query: dict[str, str] = requestQuery(request)
		info(
			"Resolved",
			Target=target.__class__.__name__,
			Path=request.path,
			Query=query or None,
		)
		try:
			match target:
				case File():
					return self.renderFile(request, target)
				case Directory():
					return self.renderDirectory(request, target, query)
				case StaticAsset(name=name):
					return self.renderAsset(request, name)
				case Missing(path=missing):
					raise NotFound(f"Not found: {urlquote(missing)}")
				case Invalid(path=invalid, reason=reason):
					warning("Could not resolve path", Path=urlquote(invalid), Reason=reason)
					raise InternalError("Internal Server Error")
		except HTTPRequestError:
			raise
		except Exception as e:
			exception(e, f"Could not serve {request.path}")
			return request.fail("Internal Server Error", contentType=ERROR_CONTENT_TYPE)

	def renderFile(self, request: HTTPRequest, target: File) -> HTTPResponse:
		# The file is opened when the body is written, after the head, so
		# we make sure it's readable first.
		if not os.access(target.path, os.R_OK):
			raise InternalError("File is not readable")
		try:
			return request.respondFile(
				target.path,
				headers={"Accept-Ranges": "none"},
				contentType=contentType(target.path.name),
				ifNoneMatch=request.header("If-None-Match"),
				ifModifiedSince=request.header("If-Modified-Since"),
			)
		except FileNotFoundError as e:
			raise NotFound(f"Not found: {request.path}") from e

	def renderDirectory(
		self, request: HTTPRequest, target: Directory, query: dict[str, str]
	) -> HTTPResponse:
		template = negotiate(query, self.renderer.registry, self.defaultType)
		snapshot = DirectorySnapshot.Make(
			target.path, target.parts, hideDotfiles=self.hideDotfiles
		)
		rendered = self.renderer.render(template, snapshot)
		return request.respond(rendered.body, contentType=rendered.contentType)

	def renderAsset(self, request: HTTPRequest, name: str) -> HTTPResponse:
		data = self.bundle.asset(name)
		if data is None:
			raise NotFound(f"Not found: {request.path}")
		return request.respond(
			data,
			contentType=contentType(name),
			headers={"Cache-Control": CACHE_FOREVER},
		)


# EOF
