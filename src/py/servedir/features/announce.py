import ipaddress
import socket
import sys

from ..utils.logging import info, warning
from ..utils.shell import ShellCommandError, shell

# --
# # Announce
#
# Tells the user where the server can be reached, copying the network
# address to the clipboard. None of this is required to serve files, so
# failures are only ever logged.

# Nothing is ever sent, connecting a UDP socket only picks the
# interface that routes to the given address.
ROUTE_ADDRESS: tuple[str, int] = ("8.8.8.8", 80)

CLIPBOARD_COMMANDS: dict[str, list[str]] = {
	"linux": ["xclip", "-selection", "clipboard"],
	"darwin": ["pbcopy"],
}


def isExternal(address: str | None) -> bool:
	"""Tells if the address is an IPv4 address that is not loopback."""
	if not address:
		return False
	try:
		ip = ipaddress.ip_address(address)
	except ValueError:
		return False
	return ip.version == 4 and not (ip.is_loopback or ip.is_unspecified)


def localAddress() -> str | None:
	"""Returns the first non-internal IPv4 address of the host, or `None`
	when there is only a loopback interface."""
	candidates: list[str] = []
	s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
	try:
		s.connect(ROUTE_ADDRESS)
		candidates.append(s.getsockname()[0])
	except OSError:
		pass
	finally:
		s.close()
	try:
		candidates += socket.gethostbyname_ex(socket.gethostname())[2]
	except OSError:
		pass
	for address in candidates:
		if isExternal(address):
			return address
	return None


def copyToClipboard(text: str, platform: str | None = None) -> bool:
	"""Copies the text to the OS clipboard using the platform's tool,
	returning `True` on success."""
	platform = platform or sys.platform
	command = CLIPBOARD_COMMANDS.get(platform)
	if not command:
		warning("Clipboard is not supported on this platform", Platform=platform)
		return False
	try:
		# NOTE: xclip forks to own the selection, so stdout must not be a pipe
		shell(command, text.encode("utf8"), capture=False)
	except ShellCommandError as e:
		warning("Could not copy to clipboard", Command=command[0], Error=str(e))
		return False
	return True


def banner(port: int, address: str | None = None, copied: bool = False) -> str:
	"""Renders the startup banner."""
	lines: list[str] = [
		"Serving!",
		"",
		f"- Local:    http://localhost:{port}",
	]
	if address:
		lines.append(f"- Network:  http://{address}:{port}")
	if copied:
		lines += ["", "Copied local address to clipboard!"]
	width: int = max(len(_) for _ in lines) + 6
	rows: list[str] = [f"   ┌{'─' * width}┐", f"   │{' ' * width}│"]
	rows += [f"   │   {_.ljust(width - 3)}│" for _ in lines]
	rows += [f"   │{' ' * width}│", f"   └{'─' * width}┘"]
	return "\n" + "\n".join(rows) + "\n"


def announce(port: int) -> str:
	"""Detects the network address, copies it to the clipboard and prints
	the banner to stdout."""
	address = localAddress()
	copied: bool = False
	if address:
		copied = copyToClipboard(address)
	else:
		warning("No network address found, only serving locally")
	text = banner(port, address, copied)
	sys.stdout.write(f"{text}\n")
	sys.stdout.flush()
	info("Serving", icon="🚀", Port=port, Address=address or "localhost")
	return text


# EOF
