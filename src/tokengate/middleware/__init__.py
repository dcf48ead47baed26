"""HTTP middleware: request ids, rate limiting, error boundary."""
