"""Permission store, authorization engine and lifecycle consumers."""
