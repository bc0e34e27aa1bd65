"""Sample agents shipped with Agnes."""
