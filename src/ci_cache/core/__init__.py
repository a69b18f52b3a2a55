"""Configuration, runner environment, and startup validation."""
