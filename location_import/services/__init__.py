"""Import pipeline services (validation, loading, reporting, orchestration)."""
