"""Runtime services shared across the condenser (logging, profiling)."""
