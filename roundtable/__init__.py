"""
Roundtable - plot hook lifecycle engine for conversational fiction hosts.
"""

__version__ = "0.3.0"
