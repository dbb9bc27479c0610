import asyncio
import sys
from pathlib import Path

from .config import PORT
from .features.announce import announce
from .server import run
from .services.files import FileService
from .utils.logging import info, warning

USAGE: str = "Usage: servedir [--feed] <directory>"


def announceInBackground(port: int) -> "asyncio.Future[str]":
	"""Runs the announcer in the default executor, as detecting the address
	and copying to the clipboard block."""
	return asyncio.get_running_loop().run_in_executor(None, announce, port)


def parseArgs(args: list[str]) -> tuple[str | None, bool]:
	"""Returns the directory to serve and whether the feed variant is on."""
	root: str | None = None
	feed: bool = False
	for arg in args:
		if arg == "--feed":
			feed = True
		elif arg.startswith("--"):
			raise ValueError(f"Unknown option: {arg}")
		elif root is None:
			root = arg
	return root, feed


def main(args: list[str] | None = None) -> int:
	try:
		root, feed = parseArgs(sys.argv[1:] if args is None else args)
	except ValueError as e:
		sys.stderr.write(f"{e}\n{USAGE}\n")
		return 1
	if root is None:
		sys.stderr.write(f"Please provide the directory to be served.\n{USAGE}\n")
		return 1
	if not Path(root).is_dir():
		warning("Directory does not exist, all requests will be 404", Path=root)
	info("Starting static file server", Root=root, Feed=feed)
	run(FileService(root, feed=feed), port=PORT, onListening=announceInBackground)
	return 0


if __name__ == "__main__":
	sys.exit(main())

# EOF
