import asyncio
import os
from pathlib import Path, PurePosixPath
from urllib.parse import unquote

from ..config import LOG_REQUESTS
from ..http.model import HTTPRequest, HTTPResponse
from ..model import Service
from ..utils.logging import access, warning

CONTENT_TYPES: dict[str, str] = {
	".html": "text/html",
	".css": "text/css",
	".js": "text/javascript",
	".png": "image/png",
	".jpg": "image/jpeg",
	".xml": "text/xml",
}

# Feeds are served as RSS, everything else is unchanged
FEED_CONTENT_TYPES: dict[str, str] = CONTENT_TYPES | {".xml": "application/rss+xml"}

DEFAULT_CONTENT_TYPE: str = "application/octet-stream"

INDEX: str = "index.html"
NOT_FOUND: str = "<h1>404 Not Found</h1>"
SERVER_ERROR: str = "<h1>500 Server Error</h1>"


def contentType(extension: str, *, feed: bool = False) -> str:
	"""Returns the MIME type for the given extension (with its leading dot),
	defaulting to `application/octet-stream`."""
	return (FEED_CONTENT_TYPES if feed else CONTENT_TYPES).get(
		extension.lower(), DEFAULT_CONTENT_TYPE
	)


class FileService(Service):
	"""A service to serve files from a local directory. Paths without an
	extension are served as `.html` and directories as their `index.html`."""

	def __init__(
		self,
		root: str | Path | None = None,
		*,
		feed: bool = False,
		logRequests: bool = LOG_REQUESTS,
	):
		base: Path = root if isinstance(root, Path) else Path(root or ".")
		self.root: Path = Path(os.path.normpath(base.absolute()))
		self.feed: bool = feed
		self.logRequests: bool = logRequests
		super().__init__()

	def resolvePath(self, path: str) -> Path | None:
		"""Resolves the request path to a local path, returning `None` when
		it would escape the root directory."""
		url: str = unquote(path)
		if url == "/":
			url = f"{url}{INDEX}"
		elif not PurePosixPath(url).suffix:
			url = f"{url}.html"
		local_path = Path(os.path.normpath(self.root.joinpath(url.lstrip("/"))))
		if not local_path.parts[: len(parts := self.root.parts)] == parts:
			return None
		return local_path

	def headers(self, path: Path) -> dict[str, str]:
		"""Returns the headers to send along with the file at `path`."""
		extension = path.suffix
		res: dict[str, str] = {
			"Content-Type": contentType(extension, feed=self.feed)
		}
		if self.feed:
			res["Content-Disposition"] = (
				"inline" if extension.lower() == ".xml" else "attachment"
			)
		return res

	async def readFile(self, path: Path) -> bytes:
		"""Reads the file in the default executor, so that the event loop
		is never blocked."""
		return await asyncio.get_running_loop().run_in_executor(None, path.read_bytes)

	async def process(self, request: HTTPRequest) -> HTTPResponse:
		local_path = self.resolvePath(request.path)
		res: HTTPResponse
		if local_path is None:
			warning("Path is outside of root", Path=request.path, Peer=request.peer)
			res = request.notFound(NOT_FOUND, contentType="text/html")
		else:
			try:
				data = await self.readFile(local_path)
			except FileNotFoundError:
				res = request.notFound(NOT_FOUND, contentType="text/html")
			except (OSError, ValueError) as e:
				# Permissions, directories, invalid names, I/O errors
				warning(
					"Could not read file",
					Path=str(local_path),
					Error=f"{e.__class__.__name__}: {e}",
				)
				res = request.error(500, SERVER_ERROR, contentType="text/html")
			else:
				res = request.respond(data, headers=self.headers(local_path))
		if self.logRequests:
			access(request.peer, request.method, request.url, res.status)
		return res


# EOF
