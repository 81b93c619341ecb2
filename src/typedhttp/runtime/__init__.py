"""Runtime: events and observability."""
