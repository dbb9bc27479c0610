from typing import Iterator, Literal

from ..utils.io import LineParser
from .model import (
	HTTPAtom,
	HTTPBodyBlob,
	HTTPHeaders,
	HTTPProcessingStatus,
	HTTPRequest,
	HTTPRequestLine,
	headername,
)


class MessageParser:
	"""Parses an HTTP request line."""

	__slots__ = ["line", "value", "skipping"]

	def __init__(self) -> None:
		self.line: LineParser = LineParser()
		self.value: HTTPRequestLine | None = None
		self.skipping: int = 0

	def flush(self) -> HTTPRequestLine | None:
		res = self.value
		self.reset()
		return res

	def reset(self) -> "MessageParser":
		self.line.reset()
		self.value = None
		self.skipping = 0
		return self

	def feed(self, chunk: bytes, start: int = 0) -> tuple[bool | None, int]:
		n = len(chunk)
		available = n - start
		if self.skipping:
			# We have remaining data to skip
			read = min(available, self.skipping)
			self.skipping -= read
			return None, read
		elif available >= 5 and chunk[start] == 0x16:
			# A TLS handshake (browsers trying https), we skip the record
			size = 5 + (chunk[start + 3] << 8) + chunk[start + 4]
			if available >= size:
				return None, size
			else:
				self.skipping = size - available
				return None, available
		else:
			line, read = self.line.feed(chunk, start)
			if line:
				ln = line.decode("latin-1")
				i = ln.find(" ")
				j = ln.rfind(" ")
				if i == -1 or i == j:
					# HTTP/0.9 style, no protocol
					j = len(ln)
				p: list[str] = (ln[i + 1 : j] if i != -1 else "").split("?", 1)
				self.value = HTTPRequestLine(
					ln[0:i] if i != -1 else ln,
					p[0] or "/",
					p[1] if len(p) > 1 else "",
					ln[j + 1 :] or "HTTP/1.0",
				)
				return True, read
			else:
				return None, read

	def __str__(self) -> str:
		return f"MessageParser({self.value})"


class HeadersParser:
	__slots__ = ["headers", "contentType", "contentLength", "line"]

	def __init__(self) -> None:
		self.line: LineParser = LineParser()
		self.headers: dict[str, str] = {}
		self.contentType: str | None = None
		self.contentLength: int | None = None

	def flush(self) -> HTTPHeaders:
		res = HTTPHeaders(self.headers, self.contentType, self.contentLength)
		self.reset()
		return res

	def reset(self) -> "HeadersParser":
		self.line.reset()
		self.headers = {}
		self.contentType = None
		self.contentLength = None
		return self

	def feed(
		self, chunk: bytes, start: int = 0
	) -> tuple[str | Literal[False] | None, int]:
		"""Feeds data from chunk, starting at `start` offset. Returns
		a value and the number of bytes read. When the value is `None`, no
		header has been extracted, when the value is `False` it's an empty
		line, otherwise it is the name of the parsed header."""
		line, read = self.line.feed(chunk, start)
		if line is None:
			return None, read
		elif line:
			ln: str = line.decode("latin-1")
			i = ln.find(":")
			if i != -1:
				h = ln[:i].lower().strip()
				v = ln[i + 1 :].strip()
				if h == "content-length":
					try:
						self.contentLength = int(v)
						if self.contentLength < 0:
							self.contentLength = None
					except ValueError:
						self.contentLength = None
				elif h == "content-type":
					self.contentType = v
				n: str = headername(h)
				self.headers[n] = v
				return n, read
			else:
				return None, read
		else:
			# An empty line denotes the end of headers
			return False, read

	def __str__(self) -> str:
		return f"HeadersParser({self.headers})"


class BodyLengthParser:
	"""Consumes the body of a request with `Content-Length` set"""

	__slots__ = ["expected", "read", "data"]

	def __init__(self) -> None:
		self.expected: int = 0
		self.read: int = 0
		self.data: list[bytes] = []

	def flush(self) -> HTTPBodyBlob:
		res = HTTPBodyBlob(b"".join(self.data), self.read)
		self.reset()
		return res

	def reset(self, length: int = 0) -> "BodyLengthParser":
		self.expected = length
		self.read = 0
		self.data = []
		return self

	def feed(self, chunk: bytes, start: int = 0) -> tuple[bool | None, int]:
		to_read: int = max(0, min(len(chunk) - start, self.expected - self.read))
		self.data.append(chunk[start : start + to_read])
		self.read += to_read
		return (True if self.read >= self.expected else None), to_read


class HTTPParser:
	"""A stateful HTTP request parser, fed with chunks as they arrive
	from the socket. Yields atoms as they are complete, the last one for
	each request being the `HTTPRequest` itself."""

	def __init__(self, peer: str | None = None) -> None:
		self.peer: str | None = peer
		self.message: MessageParser = MessageParser()
		self.headers: HeadersParser = HeadersParser()
		self.bodyLength: BodyLengthParser = BodyLengthParser()
		self.parser: MessageParser | HeadersParser | BodyLengthParser = self.message
		self.requestLine: HTTPRequestLine | None = None
		self.requestHeaders: HTTPHeaders | None = None

	def request(self, body: HTTPBodyBlob) -> HTTPRequest:
		line = self.requestLine
		if line is None:
			raise RuntimeError("Parser has no request line")
		return HTTPRequest(
			method=line.method,
			path=line.path,
			query=parseQuery(line.query),
			headers=self.requestHeaders or HTTPHeaders({}),
			body=body,
			protocol=line.protocol,
			peer=self.peer,
			url=f"{line.path}?{line.query}" if line.query else line.path,
		)

	def feed(self, chunk: bytes) -> Iterator[HTTPAtom]:
		size: int = len(chunk)
		offset: int = 0
		while offset < size:
			# Partially read chunks are kept in the sub-parsers buffers until
			# they are flushed.
			ln, read = self.parser.feed(chunk, offset)
			offset += read
			if ln is None:
				continue
			elif self.parser is self.message:
				line = self.message.flush()
				self.requestLine = line
				self.requestHeaders = None
				if line is not None:
					yield line
					self.parser = self.headers
			elif self.parser is self.headers:
				if ln is False:
					headers = self.headers.flush()
					self.requestHeaders = headers
					yield headers
					if headers.contentLength:
						self.parser = self.bodyLength.reset(headers.contentLength)
						yield HTTPProcessingStatus.Body
					else:
						yield self.request(HTTPBodyBlob())
						self.parser = self.message.reset()
			elif self.parser is self.bodyLength:
				yield self.request(self.bodyLength.flush())
				self.parser = self.message.reset()
			else:
				raise RuntimeError(f"Unsupported parser: {self.parser}")


def parseQuery(text: str) -> dict[str, str]:
	res: dict[str, str] = {}
	if not text:
		return res
	for item in text.split("&"):
		kv = item.split("=", 1)
		if len(kv) == 1:
			res[item] = ""
		else:
			res[kv[0]] = kv[1]
	return res


# EOF
