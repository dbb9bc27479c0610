from os import getenv
from .utils.io import DEFAULT_ENCODING  # NOQA: F401

# The port is fixed, there is no way to override it
PORT: int = 3000

# Accessible from the local network, so that the network address works
HOST: str = getenv("HOST", "0.0.0.0")  # nosec: B104

LOG_REQUESTS: bool = getenv("SERVEDIR_LOG_REQUESTS", "1") == "1"

# EOF
