"""Authorization layer for the resource registry.

This package gates the registry operations behind a pluggable authorization
decision. It keeps authentication (who you are, established upstream) apart
from authorization (what you can do).

The package consists of:
- Authorizers: attribute-based (rule file) and authority-based (granted authorities)
- Authenticators and subject information providers: extract roles, authorities
  and identity attributes from the ambient security context
- Plugin registry: resolves configured plugin names to implementations
- Strategy selection: builds the authorization decorator from configuration
"""
