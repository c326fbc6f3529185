__path__ = __import__("pkgutil").extend_path(__path__, __name__)  # NOQA: F-821
__title__ = 'husk'
__author__ = 'The husk contributors'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.0.0"

from .arguments import *
from .coercion import *
from .compiler import *
from .descriptors import *
from .faults import *
from .parser import *
from .markers import *
from .validation import *

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
    "metadata"
))

# Placeholder, modified by dynamic-versioning.
version_info = VersionInfo(0, 0, 0, "final", 0, "")

__all__ = (
    "__path__",
    "__title__",
    "__author__",
    "__license__",
    "__version__",
    "version_info"
)

# Load the exposed API of the arguments
__all__ += arguments.__all__  # type: ignore[attr-defined]
# Load the exposed API of the descriptors
__all__ += descriptors.__all__  # type: ignore[attr-defined]
# Load the exposed API of the coercion layer
__all__ += coercion.__all__  # type: ignore[attr-defined]
# Load the exposed API of the parsers
__all__ += parser.__all__  # type: ignore[attr-defined]
__all__ += compiler.__all__  # type: ignore[attr-defined]
# Load the exposed API of the validation
__all__ += validation.__all__  # type: ignore[attr-defined]
# Load the exposed API of the marker
__all__ += markers.__all__  # type: ignore[attr-defined]
# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
