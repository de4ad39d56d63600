"""HTTP routes for the action and session API."""
