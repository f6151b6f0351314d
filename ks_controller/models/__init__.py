"""Configuration model and collaborator contracts."""
