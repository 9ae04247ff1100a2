"""
Open Blog core libraries.
"""
__version__ = "0.1.0"
