"""HTTP surface for the admin session layer."""
