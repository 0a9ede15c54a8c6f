"""
Logging Configuration
Wires the 'antmesh' logger tree: one console handler (plus an optional
log file) on the parent, and per-subsystem levels on the children
('antmesh.mesh', 'antmesh.ants', 'antmesh.input', 'antmesh.sim').
"""
import logging
import sys

LOGGER_NAME = "antmesh"
SUBSYSTEMS = ("mesh", "ants", "input", "sim")

FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level=logging.INFO, log_file=None, debug=()):
    """
    Configures the exhibit's loggers.

    Args:
        level: Level for the whole 'antmesh' tree.
        log_file: Optional path to also write the log to.
        debug: Subsystem names (see SUBSYSTEMS) that log at DEBUG
            regardless of `level`, e.g. ("ants", "input").
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # restarting the exhibit in-process must not stack handlers
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()

    # handlers pass everything; the loggers decide what gets through
    formatter = logging.Formatter(FORMAT, datefmt='%H:%M:%S')
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    for name in SUBSYSTEMS:
        set_subsystem_debug(name, name in debug)

    logger.info("Logging initialized (debug: %s).", ", ".join(debug) or "none")
    return logger


def set_subsystem_debug(name, enabled):
    """Toggle DEBUG output for one 'antmesh.<name>' child logger."""
    if name not in SUBSYSTEMS:
        raise ValueError(f"unknown subsystem {name!r}")
    child = logging.getLogger(f"{LOGGER_NAME}.{name}")
    # NOTSET falls back to the parent's level
    child.setLevel(logging.DEBUG if enabled else logging.NOTSET)
