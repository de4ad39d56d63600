"""Application services sitting between the HTTP routes and the workflows."""
