"""Core generation components."""
