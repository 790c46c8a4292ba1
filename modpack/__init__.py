"""
modpack - 模块打包工具

Packages a module source tree into a versioned, gzip-compressed USTAR archive.
"""

__version__ = "0.1.0"
__license__ = "MIT"

from .build.builder import Builder
from .config.schema import BuildSettings
from .errors import BuildError

__all__ = ["Builder", "BuildSettings", "BuildError", "__version__"]
