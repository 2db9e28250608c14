"""CLI module - ctxm command group."""
