import logging
import os

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("astrawrite.entrypoint")


def main() -> None:
  """Replace the current process with uvicorn serving the API."""
  host = os.getenv("ASTRAWRITE_HOST", "0.0.0.0")
  port = os.getenv("ASTRAWRITE_PORT", "8002")
  logger.info("Starting AstraWrite on %s:%s", host, port)
  # execvp hands signals (SIGTERM, etc.) straight to uvicorn.
  os.execvp("uvicorn", ["uvicorn", "astrawrite.main:app", "--host", host, "--port", port, "--proxy-headers"])


if __name__ == "__main__":
  main()
