"""Core abstractions: identity contract, generators, domains, errors."""
