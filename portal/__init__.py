"""Communication distribution and notification engine for the association portal.

The package is split in the usual layers: ``domain`` (entities and errors),
``application`` (use cases), ``infrastructure`` (persistence, realtime, email)
and ``interfaces`` (HTTP API).
"""
