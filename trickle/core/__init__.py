"""Domain models, configuration, logging and persistence."""
