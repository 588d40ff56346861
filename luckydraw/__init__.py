"""Weekly subscription draw: allocation engine plus persistence glue."""
