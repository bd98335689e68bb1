"""Collaborator adapters implementing the application ports."""
