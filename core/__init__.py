"""Feed reader HTML translation pipeline."""
