"""
Score the health of a single host from CPU, memory, disk and load metrics.
"""

__all__ = ["config", "diagnostics", "formatting", "scoring", "system_state", "cli"]
__version__ = "0.1.0"
