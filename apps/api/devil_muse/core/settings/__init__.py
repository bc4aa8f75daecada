from .core import CoreSettings
from .runtime import RuntimeSettings

__all__ = [
    "CoreSettings",
    "RuntimeSettings",
]
