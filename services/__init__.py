"""Auth-core services: the session manager and the error taxonomy."""
