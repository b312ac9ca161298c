"""City weather lookup service with search history."""

__version__ = "0.1.0"
