"""Internal constants shared across the library."""

#: Store name used by bindings that never declare one.
DEFAULT_STORE_NAME = "DEFAULT_STORE"

#: Prefix of the process-unique identifier given to every binding.
BINDING_ID_PREFIX = "store-binding"

# ------------------------------------------------------------------
# Attributes an embedding component framework forwards to a binding
# ------------------------------------------------------------------

ATTR_ROOT_REDUCER = "root-reducer"
ATTR_STORE_NAME = "store-name"
ATTR_ACTION = "action"

OBSERVED_ATTRIBUTES: tuple[str, ...] = (ATTR_ROOT_REDUCER, ATTR_STORE_NAME, ATTR_ACTION)
