"""
Exceptions raised by the SAV analytics pipeline.

Each carries a message meant to be shown as-is to the dashboard user.
"""


class SavAnalyticsError(Exception):
    """Base exception for the ticket analytics pipeline."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class TicketFileError(SavAnalyticsError, ValueError):
    """Raised when an uploaded spreadsheet cannot be turned into tickets."""


class SectorMappingError(SavAnalyticsError, ValueError):
    """Raised when an imported sector mapping is not a ZR -> sector object."""
