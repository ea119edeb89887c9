"""Application services: token issuance, verification and rotation."""
