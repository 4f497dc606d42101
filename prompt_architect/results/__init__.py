"""Response post-processing: labeled sections and master-prompt extraction."""
