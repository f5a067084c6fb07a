"""Quota- and credential-gated withdrawal authorization for pooled positions."""
