import time
from pathlib import Path

import pytest

from servedir.features import announce as module
from servedir.features.announce import (
	banner,
	copyToClipboard,
	isExternal,
	localAddress,
)
from servedir.utils.shell import ShellCommandError


@pytest.fixture
def commands(monkeypatch: pytest.MonkeyPatch) -> list[tuple[list[str], bytes | None]]:
	"""Records the shell commands instead of running them."""
	calls: list[tuple[list[str], bytes | None]] = []

	def shell(command: list[str], input: bytes | None = None, **options) -> bytes:
		calls.append((command, input))
		return b""

	monkeypatch.setattr(module, "shell", shell)
	return calls


def test_copy_uses_xclip_on_linux(commands):
	assert copyToClipboard("192.168.1.130", "linux") is True
	assert commands == [(["xclip", "-selection", "clipboard"], b"192.168.1.130")]


def test_copy_uses_pbcopy_on_macos(commands):
	assert copyToClipboard("192.168.1.130", "darwin") is True
	assert commands == [(["pbcopy"], b"192.168.1.130")]


def test_copy_unsupported_platform(commands, capsys: pytest.CaptureFixture):
	assert copyToClipboard("192.168.1.130", "win32") is False
	assert commands == []
	assert "not supported" in capsys.readouterr().err


def test_copy_failure_is_not_fatal(
	monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
):
	def failing(command: list[str], input: bytes | None = None, **options) -> bytes:
		raise ShellCommandError(command, 127, b"xclip: not found")

	monkeypatch.setattr(module, "shell", failing)
	assert copyToClipboard("192.168.1.130", "linux") is False
	assert "Could not copy to clipboard" in capsys.readouterr().err


def test_missing_tool_is_not_fatal(capsys: pytest.CaptureFixture, monkeypatch):
	monkeypatch.setitem(
		module.CLIPBOARD_COMMANDS, "linux", ["servedir-no-such-clipboard-tool"]
	)
	assert copyToClipboard("192.168.1.130", "linux") is False


def test_forking_tool_does_not_block(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
	# Like xclip, the tool leaves a child holding its output open
	tool = tmp_path / "clipboard"
	tool.write_text("#!/bin/sh\ncat > /dev/null\n( sleep 3 ) &\nexit 0\n")
	tool.chmod(0o755)
	monkeypatch.setitem(module.CLIPBOARD_COMMANDS, "linux", [str(tool)])
	started = time.monotonic()
	assert copyToClipboard("192.168.1.130", "linux") is True
	assert time.monotonic() - started < 2.0


@pytest.mark.parametrize(
	"address,expected",
	[
		("192.168.1.130", True),
		("10.0.0.4", True),
		("127.0.0.1", False),
		("127.0.1.1", False),
		("0.0.0.0", False),
		("::1", False),
		("fe80::1", False),
		("", False),
		(None, False),
		("not-an-ip", False),
	],
)
def test_is_external(address, expected: bool):
	assert isExternal(address) is expected


class FakeSocket:
	def __init__(self, address: str | None):
		self.address = address

	def connect(self, address):
		if self.address is None:
			raise OSError(101, "Network is unreachable")

	def getsockname(self):
		return (self.address, 54321)

	def close(self):
		pass


def test_local_address_from_route(monkeypatch: pytest.MonkeyPatch):
	monkeypatch.setattr(module.socket, "socket", lambda *_: FakeSocket("192.168.1.130"))
	monkeypatch.setattr(
		module.socket, "gethostbyname_ex", lambda _: ("host", [], ["127.0.1.1"])
	)
	assert localAddress() == "192.168.1.130"


def test_local_address_falls_back_to_hostname(monkeypatch: pytest.MonkeyPatch):
	monkeypatch.setattr(module.socket, "socket", lambda *_: FakeSocket(None))
	monkeypatch.setattr(
		module.socket,
		"gethostbyname_ex",
		lambda _: ("host", [], ["127.0.1.1", "10.1.2.3"]),
	)
	assert localAddress() == "10.1.2.3"


def test_local_address_loopback_only(monkeypatch: pytest.MonkeyPatch):
	monkeypatch.setattr(module.socket, "socket", lambda *_: FakeSocket("127.0.0.1"))
	monkeypatch.setattr(
		module.socket, "gethostbyname_ex", lambda _: ("host", [], ["127.0.0.1"])
	)
	assert localAddress() is None


def test_banner():
	text = banner(3000, "192.168.1.130", copied=True)
	assert "Serving!" in text
	assert "- Local:    http://localhost:3000" in text
	assert "- Network:  http://192.168.1.130:3000" in text
	assert "Copied local address to clipboard!" in text
	rows = text.strip("\n").splitlines()
	assert rows[0].startswith("   ┌") and rows[-1].startswith("   └")
	# The box is aligned
	assert len({len(_) for _ in rows}) == 1


def test_banner_without_network():
	text = banner(3000)
	assert "Network" not in text
	assert "clipboard" not in text


def test_announce(
	monkeypatch: pytest.MonkeyPatch, commands, capsys: pytest.CaptureFixture
):
	monkeypatch.setattr(module, "localAddress", lambda: "192.168.1.130")
	monkeypatch.setattr(module.sys, "platform", "linux")
	text = module.announce(3000)
	assert commands == [(["xclip", "-selection", "clipboard"], b"192.168.1.130")]
	assert "Copied local address to clipboard!" in text
	assert text in capsys.readouterr().out


# EOF
