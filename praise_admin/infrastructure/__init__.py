"""Collaborator implementations used by the admin API and tests."""
