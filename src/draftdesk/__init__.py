"""draftdesk: a focused writing desk for outline documents."""

__version__ = "0.1.0"
