"""Storage collaborator used by upload sessions."""
