"""Contract schema handling: directive registry and compiled contract registry."""
