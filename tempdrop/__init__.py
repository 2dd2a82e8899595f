"""
TempDrop backend.

Temporary file sharing with TTL-based metadata and a background sweep that
removes stored objects once their metadata has expired.
"""

__version__ = "1.0.0"
