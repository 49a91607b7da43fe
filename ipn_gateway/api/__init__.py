"""HTTP API for the IPN gateway."""
