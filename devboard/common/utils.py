import asyncio
import logging
import os
import socket
import tempfile
import time

DEBUG_LOG_NAME = "devboard_debug.log"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
# Buffer limit for subprocess and stdin readers; longer lines are read in chunks.
STREAM_LIMIT = 1024 * 1024


def setup_logging(log_file: str | None = None, debug: bool = False) -> str | None:
    """
    Route devboard log records to files, never to the terminal.

    The dashboard repaints the whole terminal on every event, so records
    written to stderr would be wiped or would tear the frame.

    Returns:
        Path of the debug log when debug is enabled, else None
    """
    logger = logging.getLogger("devboard")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    logger.propagate = False

    formatter = logging.Formatter(LOG_FORMAT)
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    debug_log_path = None
    if debug:
        debug_log_path = os.path.join(tempfile.gettempdir(), DEBUG_LOG_NAME)
        debug_handler = logging.FileHandler(debug_log_path, encoding="utf-8")
        debug_handler.setLevel(logging.DEBUG)
        debug_handler.setFormatter(formatter)
        logger.addHandler(debug_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    return debug_log_path


def detect_network_ips() -> list[str]:
    """Best-effort list of non-loopback IPv4 addresses of this host."""
    try:
        _name, _aliases, addresses = socket.gethostbyname_ex(socket.gethostname())
    except OSError as e:
        logging.getLogger(__name__).debug(f"Could not resolve host addresses: {e}")
        return []
    return sorted({ip for ip in addresses if not ip.startswith("127.")})


def elapsed_ms(started_at: float) -> int:
    """Milliseconds since a time.monotonic() reading."""
    return int((time.monotonic() - started_at) * 1000)


async def read_stream_line(reader: asyncio.StreamReader) -> bytes:
    """
    Read one line from reader, however long it is.

    ``StreamReader.readline`` gives up on lines longer than the reader's
    limit. Here the overrunning part is drained and kept, so the full line
    is returned. Returns b"" at end of stream.
    """
    chunks = []
    while True:
        try:
            chunks.append(await reader.readuntil(b"\n"))
            break
        except asyncio.IncompleteReadError as e:
            chunks.append(e.partial)
            break
        except asyncio.LimitOverrunError as e:
            chunks.append(await reader.read(e.consumed))
    return b"".join(chunks)
