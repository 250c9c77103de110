"""
SQL Objects - Active-record style table rows over a SQL connection.

Table handlers translate between typed row objects and table rows, build
the CRUD and search statements, and keep a per-table cache of loaded rows
for tables keyed by an auto-increment id or a UUID.
"""

__version__ = "0.1.0"
__author__ = "Systems Engineering Portfolio"
