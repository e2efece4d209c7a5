"""HTTP surface for the crawler."""
