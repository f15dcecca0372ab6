"""Internal endpoint modules (one function per auth endpoint or remote procedure)."""
