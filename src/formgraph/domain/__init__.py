"""Pure domain types: input nodes, records, and graph errors."""
