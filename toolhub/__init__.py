"""toolhub — inventory of command-line developer tools across environments."""

__version__ = "0.1.0"
