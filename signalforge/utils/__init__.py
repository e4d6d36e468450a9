"""
SignalForge - Utilities
=======================

Helper functions shared by pipeline stages.
"""

from signalforge.utils.parallel import map_securities

__all__ = ["map_securities"]
