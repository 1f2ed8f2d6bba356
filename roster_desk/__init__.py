"""roster-desk: employee roster preparation and schedule export."""

__version__ = "0.3.0"
