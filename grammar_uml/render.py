"""
Hands a written .pu file to the PlantUML command line tool.

Rendering is optional: a missing executable or a timeout is reported back
to the caller as ``(False, reason)`` instead of raising.
"""

import shlex
import subprocess
from pathlib import Path
from typing import Tuple

FORMATS = ('png', 'svg', 'txt')


def rendered_path(puml_path: str, fmt: str = 'png') -> Path:
    return Path(puml_path).with_suffix(f'.{fmt}')


def render_diagram(puml_path: str, fmt: str = 'png', command: str = 'plantuml',
                   timeout: int = 60) -> Tuple[bool, str]:
    """Run PlantUML on ``puml_path``. Returns (success, message)."""
    if fmt not in FORMATS:
        return False, f"Unsupported output format: {fmt}"
    cmd = shlex.split(command) + [f'-t{fmt}', str(puml_path)]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except FileNotFoundError:
        return False, f"PlantUML executable not found: {cmd[0]}"
    except subprocess.TimeoutExpired:
        return False, f"PlantUML timed out after {timeout}s"

    if result.returncode != 0:
        error_msg = (result.stderr or result.stdout or "Unknown error").strip()[:500]
        return False, f"PlantUML failed: {error_msg}"
    return True, str(rendered_path(puml_path, fmt))
