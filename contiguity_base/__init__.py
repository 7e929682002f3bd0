"""
Contiguity Base Python Client

Put, insert, get, update, delete and query JSON items in a Contiguity Base.

Example usage:
    from contiguity_base import db

    emails = db(api_key, project_id).base("emails")
    emails.update({"tracker.viewed": True, "tracker.view_count": emails.util.increment()}, email_id)
"""

from .base import AsyncBase, Base, Contiguity, db
from .config import ClientConfig, load_config, resolve_config
from .errors import ConfigError, ContiguityError, InvalidArgument
from .types import ExpirationSpec, FetchResult, Item
from .updates import CompiledUpdate, compile_update
from .util import Descriptor, Op, Util, append, delete, increment, prepend, set_, trim

__version__ = "0.1.0"
__all__ = [
    "db", "Contiguity", "Base", "AsyncBase",
    "ClientConfig", "load_config", "resolve_config",
    "ContiguityError", "InvalidArgument", "ConfigError",
    "ExpirationSpec", "FetchResult", "Item",
    "CompiledUpdate", "compile_update",
    "Descriptor", "Op", "Util", "increment", "append", "prepend", "trim", "set_", "delete",
]
