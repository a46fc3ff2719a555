"""
Utility functions for the statement analysis tool.

This module contains helper functions that are used across the package but
are not directly related to parsing or reporting transactions.
"""

import os
import pathlib
import logging
import re
import tempfile

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(debug=False, log_level='info', log_file=None):
    """Configure logging for the application.

    Args:
        debug (bool): Force DEBUG level
        log_level (str): Level name used when ``debug`` is False
        log_file (str or Path, optional): Log file; the ``LOG_FILE``
            environment variable takes precedence

    Returns:
        str or None: Path of the log file in use
    """
    if debug:
        level = logging.DEBUG
    else:
        level = getattr(logging, log_level.upper(), logging.INFO)

    log_file = os.getenv('LOG_FILE', log_file)

    handlers = [logging.StreamHandler()]
    if log_file:
        log_dir = os.path.dirname(str(log_file))
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    # force: handlers of a previous run in the same process are replaced
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True
    )

    return str(log_file) if log_file else None


def attach_log_file(log_file):
    """Add a file handler to the root logger once logging is configured.

    The ``LOG_FILE`` environment variable takes precedence, as in
    ``setup_logging``. A file that already has a handler is left alone.

    Returns:
        str: Path of the log file in use
    """
    log_file = os.path.abspath(os.getenv('LOG_FILE', str(log_file)))
    root = logging.getLogger()
    for handler in root.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == log_file:
            return log_file

    os.makedirs(os.path.dirname(log_file), exist_ok=True)
    handler = logging.FileHandler(log_file)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    logger.debug(f"Logging to {log_file}")
    return log_file


def ensure_directory(base_dir, dir_type):
    """Ensure a working directory exists below the statement directory.

    Args:
        base_dir (str or Path): Statement directory (GIRODIR)
        dir_type (str): Type of directory ('outdir' or 'workdir')

    Returns:
        pathlib.Path: Path to the directory

    Raises:
        ValueError: If dir_type is invalid
    """
    valid_dir_types = ['outdir', 'workdir']
    if dir_type not in valid_dir_types:
        raise ValueError(f"Invalid directory type: {dir_type}. Expected one of: {valid_dir_types}")

    dir_path = pathlib.Path(base_dir) / dir_type
    if not dir_path.exists():
        logger.debug(f"Creating directory {dir_path}")
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def atomic_write_text(path, text, encoding='utf-8', errors='strict'):
    """Write a text file through a temporary file and an atomic rename.

    The target is either left untouched or fully replaced. If writing fails
    the temporary file is removed and the error propagates.

    Args:
        path (str or Path): Target file
        text (str): Content
        encoding (str): Target encoding
        errors (str): Codec error handling

    Returns:
        pathlib.Path: The target path
    """
    path = pathlib.Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix='.tmp', dir=path.parent)
    try:
        with os.fdopen(fd, 'w', encoding=encoding, errors=errors, newline='') as f:
            f.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
    return path


def sanitize_prefix(prefix):
    """Replace every character outside ``[0-9a-zA-Z_-]`` with ``_``."""
    if not prefix:
        return ''
    return re.sub(r'[^0-9a-zA-Z_-]', '_', prefix)
