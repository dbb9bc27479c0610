import asyncio
import socket
import threading
from dataclasses import dataclass
from signal import SIGINT, SIGTERM
from typing import Any, Callable, Literal, NamedTuple

from .config import HOST, PORT
from .http.model import (
	HTTPBodyWriter,
	HTTPProcessingStatus,
	HTTPRequest,
	HTTPResponse,
)
from .http.parser import HTTPParser
from .model import Service
from .utils.logging import debug, error, event, exception, info, warning


@dataclass(slots=True)
class ServerState:
	isRunning: bool = True

	def stop(self) -> None:
		info("Server stopping…")
		self.isRunning = False

	def onException(
		self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]
	) -> None:
		e = context.get("exception")
		if e:
			exception(e)


class ServerOptions(NamedTuple):
	host: str = "0.0.0.0"  # nosec: B104
	port: int = PORT
	backlog: int = 1_024
	# Polling timeout for accepting new connections, which is how often
	# the server state is checked.
	polling: float = 1.0
	readsize: int = 4_096
	# Idle time after which a kept-alive connection is closed
	keepalive: float = 5.0
	condition: Callable[[], bool] | None = None
	onListening: Callable[[int], Any] | None = None
	stopSignals: bool = True
	debug: bool = False


SERVER_ERROR: bytes = (
	b"HTTP/1.1 500 Internal Server Error\r\n"
	b"Content-Type: text/html\r\n"
	b"Content-Length: 25\r\n"
	b"Connection: close\r\n"
	b"\r\n"
	b"<h1>500 Server Error</h1>"
)


class AIOSocketBodyWriter(HTTPBodyWriter):
	"""Specialized body writer to work with AIO sockets."""

	def __init__(
		self,
		client: "socket.socket",
		loop: asyncio.AbstractEventLoop,
	) -> None:
		super().__init__()
		self.client: socket.socket = client
		self.loop: asyncio.AbstractEventLoop = loop

	async def _writeBytes(
		self, chunk: bytes | None | Literal[False], more: bool = False
	) -> bool:
		if chunk:
			await self.loop.sock_sendall(self.client, chunk)
		return True


class AIOSocketServer:
	"""AsyncIO backend using sockets directly."""

	@classmethod
	async def OnRequest(
		cls,
		service: Service,
		client: socket.socket,
		*,
		peer: str | None = None,
		loop: asyncio.AbstractEventLoop,
		options: ServerOptions,
	) -> None:
		"""Asynchronous worker, processing the requests sent over the client
		socket until it is closed or idle."""
		size: int = options.readsize
		buffer = bytearray(size)
		keep_alive: bool = True
		status: HTTPProcessingStatus = HTTPProcessingStatus.Processing
		req_count: int = 0
		res_count: int = 0
		try:
			parser: HTTPParser = HTTPParser(peer)
			writer: AIOSocketBodyWriter = AIOSocketBodyWriter(client, loop)
			# All the requests of a kept-alive connection go through this loop,
			# until there's a `Connection: close` or the keepalive timeout
			# expires.
			while keep_alive and not writer.shouldClose:
				try:
					n = await asyncio.wait_for(
						loop.sock_recv_into(client, buffer),
						timeout=options.keepalive,
					)
				except (TimeoutError, asyncio.TimeoutError):
					status = HTTPProcessingStatus.Timeout
					break
				if not n:
					# No data means the client closed the connection
					status = HTTPProcessingStatus.NoData
					break
				# With HTTP pipelining, there may be more than one request
				# in the same payload.
				for atom in parser.feed(bytes(buffer[:n])):
					if not isinstance(atom, HTTPRequest):
						continue
					req: HTTPRequest = atom
					req_count += 1
					if options.debug:
						debug("Request", Method=req.method, Path=req.path, Peer=peer)
					if (
						req.protocol == "HTTP/1.0"
						or (req.header("Connection") or "").lower() == "close"
					):
						keep_alive = False
					res = await cls.SendResponse(req, service, writer)
					if res:
						res_count += 1
						if res.shouldClose:
							keep_alive = False
					if not keep_alive:
						break
			if res_count != req_count:
				warning("Incomplete responses", Requests=req_count, Responses=res_count)
			elif status is HTTPProcessingStatus.Timeout and not req_count:
				warning("Client timed out without sending a request", Peer=peer)
		except (BrokenPipeError, ConnectionResetError):
			# Client did an early close
			pass
		except Exception as e:
			exception(e)
		finally:
			client.close()

	@staticmethod
	async def SendResponse(
		request: HTTPRequest,
		service: Service,
		writer: HTTPBodyWriter,
	) -> HTTPResponse | None:
		"""Processes the request within the service and sends a response
		using the given writer."""
		res: HTTPResponse | None = None
		sent: bool = False
		try:
			res = await service.process(request)
		except Exception as e:
			exception(e, f"Could not process {request.method} {request.path}")
		if res is None:
			warning(
				"Service did not return a response",
				Method=request.method,
				Path=request.path,
			)
			await writer.write(SERVER_ERROR)
			writer.shouldClose = True
			return None
		try:
			await writer.write(res.head())
			sent = True
			await writer.write(res.body)
		except BrokenPipeError:
			# Client did an early close
			sent = True
			res.shouldClose = True
		if not sent:
			warning(
				"Server did not send a response",
				Method=request.method,
				Path=request.path,
			)
		return res

	@classmethod
	async def Serve(
		cls,
		service: Service,
		options: ServerOptions = ServerOptions(),
	) -> None:
		"""Main server coroutine."""
		server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
		server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
		server.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
		try:
			server.bind((options.host, options.port))
		except OSError as e:
			server.close()
			error(
				f"Unable to bind to {options.host}:{options.port}, aborting.",
				"HOSTPORTERR",
			)
			raise e
		# The port may have been picked by the OS
		port: int = server.getsockname()[1]
		server.listen(options.backlog)
		server.setblocking(False)

		tasks: set[asyncio.Task[None]] = set()
		loop = asyncio.get_running_loop()

		state = ServerState()
		# Signal handlers can only be set from the main thread
		if (
			options.stopSignals
			and threading.current_thread() is threading.main_thread()
		):
			loop.add_signal_handler(SIGINT, state.stop)
			loop.add_signal_handler(SIGTERM, state.stop)
		loop.set_exception_handler(state.onException)

		await service.start()
		info(
			"Server listening",
			icon="🚀",
			Host=options.host,
			Port=port,
		)
		if options.onListening:
			options.onListening(port)

		try:
			while state.isRunning:
				if options.condition and not options.condition():
					break
				try:
					client, address = await asyncio.wait_for(
						loop.sock_accept(server), timeout=options.polling or 1.0
					)
				except (TimeoutError, asyncio.TimeoutError):
					continue
				except OSError as e:
					# [Errno 24] Too many open files
					if e.errno == 24:
						await asyncio.sleep(0.1)
					else:
						exception(e)
					continue
				task = loop.create_task(
					cls.OnRequest(
						service,
						client,
						peer=address[0] if address else None,
						loop=loop,
						options=options,
					)
				)
				tasks.add(task)
				task.add_done_callback(tasks.discard)
		finally:
			server.close()
			for task in tasks:
				task.cancel()
			await asyncio.gather(*tasks, return_exceptions=True)
			await service.stop()


def run(
	service: Service,
	*,
	host: str = HOST,
	port: int = PORT,
	condition: Callable[[], bool] | None = None,
	onListening: Callable[[int], Any] | None = None,
) -> None:
	"""High level function to run the server."""
	options = ServerOptions(
		host=host,
		port=port,
		condition=condition,
		onListening=onListening,
	)
	try:
		asyncio.run(AIOSocketServer.Serve(service, options))
	except KeyboardInterrupt:
		event("ManualShutdown")
	event("EOK")


# EOF
