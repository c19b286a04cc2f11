"""School library manager.

Catalog, library users, loan tracking with available-copy accounting,
due/overdue notifications and digital-asset links.
"""

__version__ = "0.1.0"
