"""Domain core: reconciliation, scoring, rotation and vetting of token listings."""
