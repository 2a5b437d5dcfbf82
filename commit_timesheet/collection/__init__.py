"""Reading commit history from local git repositories."""
