from pathlib import Path
from typing import Callable

import pytest

from servedir.http.model import HTTPRequest
from servedir.http.parser import HTTPParser

PNG: bytes = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR"


@pytest.fixture
def site(tmp_path: Path) -> Path:
	"""A small site to be served."""
	root = tmp_path / "site"
	(root / "css").mkdir(parents=True)
	(root / "docs").mkdir()
	(root / "index.html").write_text("<h1>Home</h1>")
	(root / "about.html").write_text("<h1>About</h1>")
	(root / "css" / "style.css").write_text("body { color: red; }")
	(root / "app.js").write_text("console.log('hi');")
	(root / "logo.png").write_bytes(PNG)
	(root / "photo.jpg").write_bytes(b"\xff\xd8\xff\xe0")
	(root / "rss.xml").write_text("<rss version='2.0'></rss>")
	(root / "archive.tar.gz").write_bytes(b"\x1f\x8b")
	(root / "docs" / "index.html").write_text("<h1>Docs</h1>")
	(root / "docs" / "guide.html").write_text("<h1>Guide</h1>")
	# Outside of the root, must never be served
	(tmp_path / "secret.html").write_text("secret")
	return root


@pytest.fixture
def makeRequest() -> Callable[..., HTTPRequest]:
	"""Returns a function that creates requests by parsing them."""

	def make(path: str, method: str = "GET", peer: str = "127.0.0.1") -> HTTPRequest:
		parser = HTTPParser(peer)
		atoms = list(
			parser.feed(f"{method} {path} HTTP/1.1\r\nHost: localhost\r\n\r\n".encode())
		)
		req = atoms[-1]
		assert isinstance(req, HTTPRequest)
		return req

	return make


# EOF
