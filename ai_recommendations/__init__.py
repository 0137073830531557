"""AI-driven property recommendations for the marketplace."""
