"""Loads and validates decoder configuration.

This module defines the `Config` dataclass, the single container for the
settings that shape a decode run (beam width, how many sequences to return,
the score floor, the expansion mode, context caching, progress display and
log level), and `load_config`, which reads them from a YAML file.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional

import yaml

from .errors import InvalidArgumentError

EXPANSION_MODES = ("full", "mass")


@dataclass
class Config:
    """
    Typed decoder settings.

    Attributes:
        beam_size: Number of partial sequences kept at each position.
        num_sequences: Number of full sequences a decode call returns.
        min_sequence_score: Optional floor on the cumulative log-probability;
                            partial sequences scoring below it are dropped.
        expansion: ``"full"`` to try every label per beam member, ``"mass"``
                   to stop once the remaining labels cannot reach the beam.
        cache_contexts: Reuse model output for identical contexts within a call.
        show_progress: Show a tqdm progress bar for batch decoding.
        log_level: Level name passed to :func:`beamtag.utils.setup_logging` by
                   :meth:`beamtag.beam_search.BeamSearch.from_config`.
    """
    beam_size: int = 3
    num_sequences: int = 1
    min_sequence_score: Optional[float] = None
    expansion: str = "full"
    cache_contexts: bool = False
    show_progress: bool = False
    log_level: str = "WARNING"

    def __post_init__(self):
        if self.beam_size < 1:
            raise InvalidArgumentError(f"beam_size must be at least 1, got {self.beam_size}")
        if self.num_sequences < 1:
            raise InvalidArgumentError(f"num_sequences must be at least 1, got {self.num_sequences}")
        if self.expansion not in EXPANSION_MODES:
            raise InvalidArgumentError(
                f"expansion must be one of {', '.join(EXPANSION_MODES)}, got {self.expansion!r}"
            )
        if not isinstance(getattr(logging, str(self.log_level).upper(), None), int):
            raise InvalidArgumentError(f"Unknown log_level {self.log_level!r}")


def load_config(path: str = "config.yaml") -> Config:
    """
    Reads a YAML file into a validated Config object.

    Keys may appear at the top level or under a ``decoder:`` section; missing
    keys take the dataclass defaults.

    Args:
        path: The path to the YAML file.

    Returns:
        A populated `Config`.

    Raises:
        FileNotFoundError: If the file cannot be found.
        ValueError: If the YAML cannot be parsed.
        TypeError: If the root of the YAML file is not a mapping.
        InvalidArgumentError: If a value is out of range.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            y = yaml.safe_load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"Configuration file not found at: {path}")
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing YAML file at {path}: {e}")

    if y is None:
        y = {}
    if not isinstance(y, dict):
        raise TypeError(f"Configuration file {path} must be a dictionary.")

    section = y.get("decoder", y)
    if not isinstance(section, dict):
        raise TypeError(f"The 'decoder' section of {path} must be a dictionary.")

    floor = section.get("min_sequence_score")

    return Config(
        beam_size=int(section.get("beam_size", 3)),
        num_sequences=int(section.get("num_sequences", 1)),
        min_sequence_score=float(floor) if floor is not None else None,
        expansion=str(section.get("expansion", "full")),
        cache_contexts=bool(section.get("cache_contexts", False)),
        show_progress=bool(section.get("show_progress", False)),
        log_level=str(y.get("log_level", section.get("log_level", "WARNING"))),
    )
