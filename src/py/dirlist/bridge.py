import asyncio
from typing import Literal, NamedTuple
from urllib.parse import quote

from extra.http.model import HTTPBodyWriter, HTTPRequest, headername
from extra.http.parser import HTTPParser
from extra.model import Application, Service, mount
from extra.server import AIOSocketServer


class BytesBodyWriter(HTTPBodyWriter):
	"""Collects the written response in memory."""

	def __init__(self) -> None:
		super().__init__(None)
		self.data: bytearray = bytearray()

	async def _writeBytes(
		self, chunk: bytes | None | Literal[False], more: bool = False
	) -> bool:
		if chunk:
			self.data += chunk
		return True


class BridgeResponse(NamedTuple):
	"""A response parsed back from its raw bytes."""

	status: int
	message: str
	headers: dict[str, str]
	body: bytes

	@staticmethod
	def FromBytes(data: bytes) -> "BridgeResponse":
		head, _, body = data.partition(b"\r\n\r\n")
		lines = head.decode("ascii").split("\r\n")
		_, status, message = lines[0].split(" ", 2)
		headers: dict[str, str] = {}
		for line in lines[1:]:
			name, _, value = line.partition(":")
			headers[headername(name.strip())] = value.strip()
		return BridgeResponse(int(status), message, headers, body)

	@property
	def contentType(self) -> str | None:
		return self.headers.get("Content-Type")

	@property
	def text(self) -> str:
		return self.body.decode("utf8")


class Bridge:
	"""Processes raw requests through an application without a socket,
	returning raw responses, as the server would send them."""

	def __init__(self, *components: Application | Service):
		self.application: Application = mount(*components)

	async def process(self, payload: bytes) -> bytes:
		parser = HTTPParser()
		writer = BytesBodyWriter()
		for atom in parser.feed(payload):
			if isinstance(atom, HTTPRequest):
				await AIOSocketServer.SendResponse(atom, self.application, writer)
		return bytes(writer.data)

	def request(self, payload: bytes) -> bytes:
		return asyncio.run(self.process(payload))

	def get(
		self,
		path: str,
		method: str = "GET",
		*,
		encode: bool = True,
		headers: dict[str, str] | None = None,
	) -> BridgeResponse:
		"""Sends a request for the given path, which is percent-encoded
		unless `encode` is false, and parses the response."""
		uri: str = quote(path, safe="/?=&%") if encode else path
		head: str = "".join(
			f"{k}: {v}\r\n" for k, v in ({"Host": "localhost"} | (headers or {})).items()
		)
		return BridgeResponse.FromBytes(
			self.request(f"{method} {uri} HTTP/1.1\r\n{head}\r\n".encode("ascii"))
		)


# EOF
