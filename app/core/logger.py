"""
Purpose:
- One place to configure stdlib logging for the service.
- Modules just do `logger = logging.getLogger(__name__)`.
"""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger once; later calls only adjust the level."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    root.setLevel(level.upper())
    # httpx logs every request at INFO; keep it quieter than our own lines
    logging.getLogger("httpx").setLevel(logging.WARNING)
