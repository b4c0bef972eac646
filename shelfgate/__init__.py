"""shelfgate - federated SAML sign-on gateway for the reader library."""
