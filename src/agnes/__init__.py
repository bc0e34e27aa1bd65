"""Agnes: a runtime serving registered agents over JSON-RPC 2.0."""
