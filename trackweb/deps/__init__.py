# Request-scoped dependencies: session cookie, user context, shared client.
