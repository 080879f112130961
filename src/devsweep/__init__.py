"""devsweep package."""
