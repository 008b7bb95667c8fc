"""Turn Markdown/MDX pages into embedded, checksummed search sections."""
