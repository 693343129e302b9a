"""repoflow: pull-request flow metrics served from a read-through cache."""

__version__ = "0.1.0"
