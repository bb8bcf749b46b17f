"""schemas — dataclass data model shared by every planning stage."""
