"""
Utility helpers: logging setup and low-level file operations.
"""
