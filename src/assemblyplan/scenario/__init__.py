"""Session inputs: contract models and loaders."""
