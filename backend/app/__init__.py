"""Stack Navigator session service."""
