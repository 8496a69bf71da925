"""HTTP layer: application factory, middleware, views and routes."""
