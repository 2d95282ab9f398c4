"""Event-driven preview lifecycle: ensure and deploy, tear down, or no-op."""
