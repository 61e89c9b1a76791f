"""
Mintscan: scans Solana blocks for newly initialized SPL token mints.
"""

__version__ = "0.1.0"
