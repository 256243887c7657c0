"""Third-party messaging integrations."""
