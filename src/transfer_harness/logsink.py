import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class LogSink:
    """Redirect diagnostic logging to a file for the duration of one run."""

    logger_names = ("transfer_harness", "aiohttp")

    def __init__(self, level: int = logging.DEBUG):
        self.level = level
        self.path = None
        self.handler = None
        self.saved_levels = {}

    def open(self, path: str):
        """
        Start writing diagnostic logs to `path`, closing any previous file.

        Args:
            path: File to (re)create
        """
        self.close()

        handler = logging.FileHandler(path, mode="w", encoding="utf-8")
        handler.setLevel(self.level)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))

        for name in self.logger_names:
            target = logging.getLogger(name)
            self.saved_levels[name] = target.level
            target.setLevel(self.level)
            target.addHandler(handler)

        self.handler = handler
        self.path = path

    def close(self):
        """Flush and detach the file handler, restoring logger levels."""
        if self.handler is None:
            return

        for name in self.logger_names:
            target = logging.getLogger(name)
            target.removeHandler(self.handler)
            target.setLevel(self.saved_levels.get(name, logging.NOTSET))

        self.handler.flush()
        self.handler.close()
        self.handler = None
        self.path = None
        self.saved_levels = {}

    @property
    def is_open(self) -> bool:
        return self.handler is not None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
