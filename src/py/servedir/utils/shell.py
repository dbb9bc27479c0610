import subprocess  # nosec: B404

# --
# # Shell Utils
#
# Runs external commands, turning failures into `ShellCommandError`.


class ShellCommandError(RuntimeError):
	"""Wrapper for a shell command error."""

	__slots__ = ["command", "status", "error"]

	def __init__(self, command: list[str], status: int, error: bytes):
		super().__init__()
		self.command = command
		self.status = status
		self.error = error

	def __str__(self) -> str:
		return f"{self.__class__.__name__}: '{' '.join(self.command)}', failed with status {self.status}: {self.error.decode('utf8', 'replace')}"


def shell(
	command: list[str],
	input: bytes | None = None,
	*,
	capture: bool = True,
	timeout: float | None = 5.0,
) -> bytes:
	"""Runs a shell command, feeding it `input` and returning its stdout.
	With `capture=False`, stdout and stderr are discarded, which is required
	for commands that fork and keep their output open (like `xclip`)."""
	try:
		res = subprocess.run(  # nosec: B603
			command,
			stdout=subprocess.PIPE if capture else subprocess.DEVNULL,
			stderr=subprocess.PIPE if capture else subprocess.DEVNULL,
			input=input,
			timeout=timeout,
		)
	except FileNotFoundError as e:
		raise ShellCommandError(command, 127, str(e).encode("utf8")) from e
	except subprocess.TimeoutExpired as e:
		raise ShellCommandError(
			command, -1, f"Timed out after {timeout}s".encode("utf8")
		) from e
	if res.returncode == 0:
		return res.stdout or b""
	else:
		raise ShellCommandError(command, res.returncode, res.stderr or b"")


# EOF
