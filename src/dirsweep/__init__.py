"""
Dirsweep - Paced, block-aware sweeps of a directory search service.

Drives one search per target location through a browser session, backs off
when the service throttles, and writes one CSV per target.
"""

__version__ = "0.1.0"
__app_name__ = "dirsweep"
