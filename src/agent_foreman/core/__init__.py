"""Feature list, progress log, configuration and dependency analysis."""
