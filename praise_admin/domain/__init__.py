"""Domain types for zones, memberships, roles and admin read models."""
