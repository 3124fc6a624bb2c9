"""chatstream: streaming client for a document chat backend."""

__version__ = "0.1.0"
