"""Internal HTTP endpoint wrappers for the Saillogger API."""
