from .config import Config, load  # NOQA: F401
from .app import build, service  # NOQA: F401
from .services.listing import ListingService  # NOQA: F401

__version__ = "0.1.0"

# EOF
