"""HTTP routers for the relay."""
