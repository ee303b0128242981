"""Node packs."""
