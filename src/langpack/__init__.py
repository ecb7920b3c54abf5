"""langpack: Version and dependency resolution for proof-editor language packages."""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"
