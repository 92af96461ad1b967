"""Stock and order services."""
