"""Configuration: CLI flags, env vars, and bmcapture.toml merged into one object."""
