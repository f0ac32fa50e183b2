"""FastAPI surface for the translation pipeline."""
