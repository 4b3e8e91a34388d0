"""Command-line tools for tvp_invoker."""
