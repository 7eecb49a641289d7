"""Authorizer implementations.

Available authorizers:
- attribute_based: Evaluates the request against the ABAC rule set, using the
  subject roles reported by a role authenticator
- authority_based: Requires a fixed granted authority per registry action
"""
