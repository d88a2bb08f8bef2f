"""Format-specific package builders."""
