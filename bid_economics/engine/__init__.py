"""Pure pipeline stages: no I/O and no logging; the orchestration layer owns both."""
