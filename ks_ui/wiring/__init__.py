"""UI wiring helpers for CLI setup."""

from ks_ui.wiring.dependencies import UIContext, configure_logging

__all__ = ["UIContext", "configure_logging"]
