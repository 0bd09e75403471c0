import logging, json, sys, time, os


def get_logger(name="GitLedger", level=None, to_file=None):
    """Unified structured logger for all gitledger components.

    Level defaults to GITLEDGER_LOG_LEVEL (WARNING when unset) so that CLI
    output on stdout is not interleaved with log lines on stderr.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level or os.getenv("GITLEDGER_LOG_LEVEL", "WARNING").upper())
    to_file = to_file or os.getenv("GITLEDGER_LOG_FILE")

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        formatter = logging.Formatter(
            fmt=json.dumps({
                "ts": "%(asctime)s",
                "level": "%(levelname)s",
                "name": "%(name)s",
                "msg": "%(message)s"
            }),
            datefmt="%Y-%m-%dT%H:%M:%SZ",
        )
        formatter.converter = time.gmtime  # Use UTC timestamps
        handler.setFormatter(formatter)
        logger.addHandler(handler)

        if to_file:
            os.makedirs(os.path.dirname(to_file) or ".", exist_ok=True)
            file_handler = logging.FileHandler(to_file)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger
