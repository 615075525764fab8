"""
Art Gallery backend
Public artwork gallery with an admin-gated upload pipeline
"""

__version__ = "0.1.0"

from .config import settings

__all__ = ["settings", "__version__"]
