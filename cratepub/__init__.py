"""cratepub: release orchestration for Cargo crates."""

__version__ = "0.1.0"
