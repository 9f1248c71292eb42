# tabnav — tabbed link directory: groups of bookmarked sites, admin editing,
# drag-to-reorder staging and site-wide configuration.

from .errors import (
    NavError, ValidationError, AuthorizationError, TransportError, ParseError, SortStateError,
)
from .models import Group, Site
from .client import DirectoryClient, MemoryDirectoryClient, HttpDirectoryClient
from .session import SessionController, SessionState, ViewMode
from .store import DirectoryStore
from .sorting import SortModeController, SortMode
from .config import ConfigResolver, DEFAULT_CONFIGS
from .navigator import Navigator

__version__ = "0.1.0"
