"""Registration desk - look up, cancel and confirm course registrations kept in Google Sheets."""

__version__ = "1.0.0"
