import logging
import sys


def setup_logging(level_str: str = "WARNING"):
    """Configures basic logging for the application."""
    numeric_level = getattr(logging, level_str.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level_str}")

    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s [%(levelname)-5.5s] [%(name)-20.20s]: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],  # stdout so tqdm bars on stderr stay intact
    )
    logging.getLogger("beamtag").info("Logging initialized at level %s", level_str.upper())
