"""Identity-federation broker: OAuth2 login against external providers, minted internal credentials."""

__version__ = "0.1.0"
