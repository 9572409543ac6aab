"""Split restaurant receipts between friends, with tax and tip shared proportionally."""

__version__ = "0.1.0"
