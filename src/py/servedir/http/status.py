# Reason phrases for the statuses the server produces
HTTP_STATUS: dict[int, str] = {
	200: "OK",
	404: "Not Found",
	500: "Internal Server Error",
}

# EOF
