"""Command line front end for the daily budget ledger."""
