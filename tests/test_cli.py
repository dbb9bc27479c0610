import asyncio
import subprocess  # nosec: B404
import sys
import threading
from pathlib import Path

import pytest

import servedir.__main__ as cli
from servedir.config import PORT


@pytest.fixture
def served(monkeypatch: pytest.MonkeyPatch) -> list[dict]:
	"""Records the calls to `run` instead of starting the server."""
	calls: list[dict] = []

	def run(service, **options) -> None:
		calls.append(dict(service=service, **options))

	monkeypatch.setattr(cli, "run", run)
	return calls


def test_missing_directory_exits_with_1(served, capsys: pytest.CaptureFixture):
	assert cli.main([]) == 1
	assert served == []
	assert "Please provide the directory to be served." in capsys.readouterr().err


def test_unknown_option_exits_with_1(served, capsys: pytest.CaptureFixture):
	assert cli.main(["--port", "8000", "."]) == 1
	assert served == []
	assert "Unknown option: --port" in capsys.readouterr().err


def test_serves_directory(served, site: Path):
	assert cli.main([str(site)]) == 0
	assert len(served) == 1
	service = served[0]["service"]
	assert service.root == site
	assert service.feed is False
	assert served[0]["port"] == PORT == 3000
	assert served[0]["onListening"] is cli.announceInBackground


def test_feed_variant(served, site: Path):
	assert cli.main(["--feed", str(site)]) == 0
	assert served[0]["service"].feed is True


def test_announce_runs_off_the_loop(monkeypatch: pytest.MonkeyPatch):
	threads: list[threading.Thread] = []

	def announce(port: int) -> str:
		threads.append(threading.current_thread())
		return f"banner {port}"

	monkeypatch.setattr(cli, "announce", announce)

	async def main() -> str:
		return await cli.announceInBackground(PORT)

	assert asyncio.run(main()) == "banner 3000"
	assert threads and threads[0] is not threading.main_thread()


def test_parse_args():
	assert cli.parseArgs(["site"]) == ("site", False)
	assert cli.parseArgs(["site", "--feed"]) == ("site", True)
	assert cli.parseArgs([]) == (None, False)


def test_module_without_arguments():
	res = subprocess.run(  # nosec: B603
		[sys.executable, "-m", "servedir"],
		stdout=subprocess.PIPE,
		stderr=subprocess.PIPE,
		timeout=30,
	)
	assert res.returncode == 1
	assert b"Please provide the directory to be served." in res.stderr


# EOF
