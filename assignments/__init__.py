"""Assignment lifecycle: derived state, teacher summaries and durable state records."""
