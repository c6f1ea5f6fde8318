"""Authorization server: account lifecycle processes and credential tokens."""
