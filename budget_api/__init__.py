"""HTTP front end for the daily budget ledger."""
