from .config import Configuration
from .errors import HostfetchError, LifecycleError, ProbeError, ValidationError
from .identity import IdentityRecord
from .runtime_context import RuntimeContext, State

__all__ = [
  "Configuration",
  "HostfetchError",
  "LifecycleError",
  "ProbeError",
  "ValidationError",
  "IdentityRecord",
  "RuntimeContext",
  "State",
]
