"""Repository presets, user repositories and connection handles."""
