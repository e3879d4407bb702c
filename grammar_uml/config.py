"""
Runtime configuration.

Loads the nearest ``.env`` (current directory first, then its parents) and
reads settings from the environment. Values are read when a Settings object
is built, so tests can patch the environment first.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


def find_env_file(start: Optional[Path] = None) -> Optional[Path]:
    """Locate a .env file in ``start`` or one of its parents."""
    base = start or Path.cwd()
    for directory in [base, *base.parents]:
        candidate = directory / ".env"
        if candidate.exists():
            return candidate
    return None


def load_env(start: Optional[Path] = None) -> Optional[Path]:
    env_path = find_env_file(start)
    if env_path is not None:
        load_dotenv(env_path)
    return env_path


def _flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    output_dir: Path
    plantuml_cmd: str
    plantuml_timeout: int
    verbose: bool

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            output_dir=Path(os.environ.get("GRAMMAR_UML_OUTPUT_DIR", "uml")),
            plantuml_cmd=os.environ.get("PLANTUML_CMD", "plantuml"),
            plantuml_timeout=int(os.environ.get("PLANTUML_TIMEOUT", "60")),
            verbose=_flag(os.environ.get("GRAMMAR_UML_VERBOSE", "")),
        )
