"""sharedstore - named, reducer-driven state containers shared across callers."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("sharedstore")
except PackageNotFoundError:
    __version__ = "0+local"
from sharedstore._constants import DEFAULT_STORE_NAME, OBSERVED_ATTRIBUTES
from sharedstore.binding import StateChangeListener, StoreBinding
from sharedstore.config import RegistryConfig
from sharedstore.container import StateContainer, create_container
from sharedstore.events import BindingState, StateChangeEvent
from sharedstore.exceptions import (
    DuplicateAttachError,
    InvalidStoreNameError,
    NoSuchStoreError,
    StoreConfigError,
    StoreError,
    StoreNeverReadyError,
)
from sharedstore.registry import StoreEntry, StoreRegistry, default_registry, normalize_store_name

__all__ = [
    "__version__",
    "BindingState",
    "DEFAULT_STORE_NAME",
    "DuplicateAttachError",
    "InvalidStoreNameError",
    "NoSuchStoreError",
    "OBSERVED_ATTRIBUTES",
    "RegistryConfig",
    "StateChangeEvent",
    "StateChangeListener",
    "StateContainer",
    "StoreBinding",
    "StoreConfigError",
    "StoreEntry",
    "StoreError",
    "StoreNeverReadyError",
    "StoreRegistry",
    "create_container",
    "default_registry",
    "normalize_store_name",
]
