"""
This module contains variables that can be tweaked through the system environment. Constants do
NOT belong in this module. Constants are values that should not be altered without making a code
change (e.g., the set of inline tag names). Constants go into `./constants.py`.
"""

import os
from dataclasses import dataclass


@dataclass
class ENVConfig:
    """class for configuring environment parameters"""

    def _get_string(self, var: str, default_value: str = "") -> str:
        """attempt to get the value of var from the os environment; if not present return the
        default_value"""
        return os.environ.get(var, default_value)

    def _get_int(self, var: str, default_value: int) -> int:
        if value := self._get_string(var):
            return int(value)
        return default_value

    def _get_bool(self, var: str, default_value: bool) -> bool:
        if value := self._get_string(var):
            return value.lower() in ("true", "1", "t")
        return default_value

    @property
    def MAX_TREE_DEPTH(self) -> int:
        """deepest element nesting a conversion will descend into before raising

        Each level of nesting costs a few interpreter frames, so this must stay well below the
        interpreter recursion limit.
        """
        return self._get_int("RICHDOC_MAX_TREE_DEPTH", 256)

    @property
    def LOG_CONVERSION_SUMMARY(self) -> bool:
        """log block and entity counts at DEBUG level after every conversion"""
        return self._get_bool("RICHDOC_LOG_CONVERSION_SUMMARY", True)


env_config = ENVConfig()
