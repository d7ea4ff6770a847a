"""HTTP surface: chat and health routes, static files, CORS."""
