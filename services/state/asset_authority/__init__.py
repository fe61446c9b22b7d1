"""Asset Authority Service: blob reference tracking and reclamation."""
