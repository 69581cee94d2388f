"""imagemill - Transformation configuration engine for image editing.

Host applications (the editing shell, a worker, a notebook) call
`setup_logging()` once at startup; library code only logs through
`get_logger(__name__)`.
"""

import logging

from imagemill.logging_config import LOGGER_NAME, setup_logging

__version__ = "0.1.0"
__all__ = ["__version__", "setup_logging"]

# Silent until the host application configures logging
logging.getLogger(LOGGER_NAME).addHandler(logging.NullHandler())
