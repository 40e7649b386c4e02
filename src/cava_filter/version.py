"""Help-text metadata for the command line."""

from __future__ import annotations

import platform

from . import __version__

__all__ = ["PROJECT_URL", "build_help_epilog"]

PROJECT_URL = "https://github.com/karlstav/cava"


def build_help_epilog() -> str:
    return (
        "Input is raw pcm_s16le, e.g. from\n"
        "  ffmpeg -i file.wav -f s16le -ar 44100 -acodec pcm_s16le -ac 2 file.raw\n"
        "\n"
        f"Spectrum bars follow cava: {PROJECT_URL}\n"
        f"Platform: {platform.platform()}\n"
        f"Version: {__version__}"
    )
