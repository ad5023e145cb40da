"""
fsfind - Core Package

A small find-like tool that walks a directory tree and reports the entries
matching every predicate given on the command line.
"""

__version__ = "0.1.0"
__author__ = "fsfind Team"
