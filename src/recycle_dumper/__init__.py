from __future__ import annotations

from .dumper import Dumper
from .dumperconfig import DumperConfig
from .dumperdecoder import decode
from .dumperdecoder import DecodeError

__all__ = [
    "DecodeError",
    "Dumper",
    "DumperConfig",
    "decode",
]
