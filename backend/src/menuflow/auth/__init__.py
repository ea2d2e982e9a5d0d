"""Bearer token authentication at the API edge."""
