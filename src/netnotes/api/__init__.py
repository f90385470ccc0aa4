"""HTTP surface for capture and ranking."""
