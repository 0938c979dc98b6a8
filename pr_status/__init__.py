"""pr-status: classify pull requests by review status, then label them or report on them."""

__version__ = "0.1.0"
