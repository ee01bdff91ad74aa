"""Infrastructure layer: persistence, authentication, HTTP API and notifications."""
