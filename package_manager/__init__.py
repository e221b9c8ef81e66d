"""Package lifecycle and platform integration credential broker."""
