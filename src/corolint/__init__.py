"""corolint: structured-concurrency discipline checks over host syntax trees."""

__version__ = "0.4.0"
