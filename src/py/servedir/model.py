from typing import Awaitable, Optional

from mypy_extensions import mypyc_attr

from .http.model import HTTPRequest, HTTPResponse

# -----------------------------------------------------------------------------
#
# SERVICE
#
# -----------------------------------------------------------------------------


# NOTE: Services are subclassed by interpreted code when compiled with mypyc.
@mypyc_attr(allow_interpreted_subclasses=True)
class Service:
	"""A service turns requests into responses. The server mounts exactly
	one service."""

	def __init__(self, name: Optional[str] = None) -> None:
		self.name: str = name or self.__class__.__name__
		self.init()

	def init(self) -> None:
		pass

	async def start(self) -> None:
		"""Can be overridden to do asynchronous pre-start work"""
		pass

	async def stop(self) -> None:
		"""Can be overridden to do asynchronous post-stop work"""
		pass

	def process(self, request: HTTPRequest) -> Awaitable[HTTPResponse | None]:
		raise NotImplementedError

	def __repr__(self) -> str:
		return f"(Service {self.name})"


# EOF
