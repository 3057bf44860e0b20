"""
curimport - Game curation ingestion and import

Indexes curation archives, folders and loose meta files, normalizes their
metadata, fills gaps from library-wide defaults and imports them into a
LaunchBox-style game library.
"""

__version__ = "0.3.0"
__author__ = "jbruns"
