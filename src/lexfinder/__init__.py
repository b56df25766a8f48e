"""LexFinder - incremental lexical search over watched text folders."""

__version__ = "0.1.0"
