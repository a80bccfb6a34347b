import logging
import os


class NoiseFilter(logging.Filter):
    """Drop chatty access-log lines from the web server."""

    def __init__(self, patterns_to_suppress):
        super().__init__()
        self.patterns = patterns_to_suppress

    def filter(self, record):
        message = record.getMessage()
        return not any(p in message for p in self.patterns)


def setup_logging(level: str | None = None):
    """Configure root logging from LOG_LEVEL (or the given level)."""
    log_level = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    numeric_level = getattr(logging, log_level, logging.INFO)

    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
        force=True,
    )

    noise_filter = NoiseFilter(['"GET /static/', '"GET /favicon.ico'])
    for handler in logging.getLogger().handlers:
        handler.addFilter(noise_filter)

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
