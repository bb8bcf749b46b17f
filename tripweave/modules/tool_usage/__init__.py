"""modules/tool_usage — distance, transport and accommodation calculators."""
