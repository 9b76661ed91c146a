"""
corekeeper: background maintenance for a long-running proxy client.
"""

__version__ = "0.3.0"
