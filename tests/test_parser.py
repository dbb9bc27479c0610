from servedir.http.model import (
	HTTPHeaders,
	HTTPProcessingStatus,
	HTTPRequest,
	HTTPRequestLine,
)
from servedir.http.parser import HTTPParser, parseQuery


def requests(parser: HTTPParser, *chunks: bytes) -> list[HTTPRequest]:
	return [
		atom
		for chunk in chunks
		for atom in parser.feed(chunk)
		if isinstance(atom, HTTPRequest)
	]


def test_parse_request_in_one_chunk():
	parser = HTTPParser("10.0.0.2")
	atoms = list(
		parser.feed(b"GET /docs/guide?lang=en HTTP/1.1\r\nHost: localhost\r\n\r\n")
	)
	assert atoms[0] == HTTPRequestLine("GET", "/docs/guide", "lang=en", "HTTP/1.1")
	assert isinstance(atoms[1], HTTPHeaders)
	req = atoms[-1]
	assert isinstance(req, HTTPRequest)
	assert req.method == "GET"
	assert req.path == "/docs/guide"
	assert req.query == {"lang": "en"}
	assert req.protocol == "HTTP/1.1"
	assert req.peer == "10.0.0.2"
	assert req.header("host") == "localhost"


def test_parse_request_split_in_chunks():
	parser = HTTPParser()
	reqs = requests(
		parser,
		b"GET /time/5 ",
		b"HTTP/1.1\r\nHost: ",
		b"127.0.0.1\r",
		b"\nConn",
		b"ection: close\r\n",
		b"\r",
		b"\n",
	)
	assert len(reqs) == 1
	assert reqs[0].path == "/time/5"
	assert reqs[0].header("Connection") == "close"


def test_pipelined_requests():
	parser = HTTPParser()
	reqs = requests(
		parser,
		b"GET /a.css HTTP/1.1\r\nHost: x\r\n\r\nGET /b.js HTTP/1.1\r\nHost: x\r\n\r\n",
	)
	assert [_.path for _ in reqs] == ["/a.css", "/b.js"]


def test_body_is_consumed_before_next_request():
	parser = HTTPParser()
	atoms = list(
		parser.feed(b"POST /form HTTP/1.1\r\nContent-Length: 5\r\n\r\nab")
	)
	assert HTTPProcessingStatus.Body in atoms
	assert not any(isinstance(_, HTTPRequest) for _ in atoms)
	reqs = requests(parser, b"cde", b"GET / HTTP/1.1\r\n\r\n")
	assert reqs[0].method == "POST"
	assert reqs[0].body is not None
	assert reqs[0].body.payload == b"abcde"
	assert reqs[1].path == "/"


def test_negative_content_length_is_ignored():
	parser = HTTPParser()
	reqs = requests(
		parser,
		b"GET /a.css HTTP/1.1\r\nContent-Length: -5\r\n\r\n",
		b"GET /b.css HTTP/1.1\r\n\r\n",
	)
	assert [_.path for _ in reqs] == ["/a.css", "/b.css"]


def test_query_is_kept_in_url():
	reqs = requests(HTTPParser(), b"GET /about?x=1 HTTP/1.1\r\n\r\n")
	assert reqs[0].path == "/about"
	assert reqs[0].url == "/about?x=1"


def test_request_line_without_protocol():
	parser = HTTPParser()
	reqs = requests(parser, b"GET /index.html\r\n\r\n")
	assert reqs[0].path == "/index.html"
	assert reqs[0].protocol == "HTTP/1.0"


def test_tls_handshake_is_skipped():
	parser = HTTPParser()
	handshake = bytes([0x16, 0x03, 0x01, 0x00, 0x02, 0xAA, 0xBB])
	reqs = requests(parser, handshake + b"GET / HTTP/1.1\r\n\r\n")
	assert [_.path for _ in reqs] == ["/"]


def test_parse_query():
	assert parseQuery("") == {}
	assert parseQuery("a=1&b&c=x=y") == {"a": "1", "b": "", "c": "x=y"}


# EOF
