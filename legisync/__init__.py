"""LegiSync - Congress.gov data synchronization pipeline."""

__version__ = "0.1.0"
